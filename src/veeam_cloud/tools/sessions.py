from __future__ import annotations

from veeam_cloud.auth import LOGON_SESSIONS
from veeam_cloud.client import VeeamClient
from veeam_cloud.models import LogonSessionList


async def get_logon_sessions(client: VeeamClient) -> LogonSessionList:
    """List the logon sessions open for the authenticated user."""
    return await client.get_model(LogonSessionList, LOGON_SESSIONS, tool="sessions")
