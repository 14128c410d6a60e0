"""
Session token handling.

`SessionTokenAuth` is an httpx auth flow that attaches the session token to
every authenticated request and, when the server reports the token as
expired, renews it once and replays the request. `logon` and `logoff`
perform the session handshake against the API.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, AsyncGenerator, Awaitable, Callable, Optional

import httpx

from .codec import BodyCodec
from .errors import VeeamClientError, VeeamParseError, VeeamProtocolError
from .models import (
    EnterpriseManager,
    ErrorInfo,
    LogonSession,
    LogonSessionList,
    Rel,
    validate_model,
)
from .observability import log_event

if TYPE_CHECKING:
    from .client import VeeamClient

DEFAULT_TOKEN_HEADER = "X-RestSvcSessionId"
TOKEN_EXPIRED_MESSAGE = "Authentication token has expired"
API_ROOT = "/api/"
LOGON_SESSIONS = "/api/logonSessions"

log = logging.getLogger("veeam_cloud.auth")


class AuthState(str, Enum):
    ANONYMOUS = "Anonymous"
    AUTHENTICATING = "Authenticating"
    AUTHENTICATED = "Authenticated"


@dataclass
class Session:
    base_url: str
    token_header: str = DEFAULT_TOKEN_HEADER
    token: Optional[str] = None
    state: AuthState = AuthState.ANONYMOUS

    def clear(self) -> None:
        self.token = None
        self.state = AuthState.ANONYMOUS


def is_token_expired(response: httpx.Response, codec: BodyCodec) -> bool:
    if response.status_code != 401:
        return False
    try:
        payload = codec.decode(response.content)
    except VeeamParseError:
        return False
    error = validate_model(ErrorInfo, payload)
    return error is not None and error.message == TOKEN_EXPIRED_MESSAGE


class SessionTokenAuth(httpx.Auth):
    """
    Attaches the session token and renews it once on expiry.

    `reauthenticate` is awaited inside the renewal critical section and must
    leave a fresh token in `session`. Concurrent requests that hit the same
    expired token share one renewal.
    """

    requires_response_body = True

    def __init__(
        self,
        session: Session,
        reauthenticate: Callable[[], Awaitable[object]],
        codec: BodyCodec,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.reauthenticate = reauthenticate
        self.codec = codec
        self.log = logger or log
        self._renewal_lock = asyncio.Lock()

    def sync_auth_flow(self, request):
        raise RuntimeError("SessionTokenAuth can only be used with httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        header = self.session.token_header
        token = self.session.token
        if token:
            request.headers[header] = token

        response = yield request
        # Overriding async_auth_flow bypasses requires_response_body
        await response.aread()

        if not is_token_expired(response, self.codec):
            return

        sent_token = request.headers.get(header)
        if not sent_token:
            raise VeeamProtocolError(
                f"missing session token: {request.method} {request.url.path} "
                f"was rejected as expired but carried no {header} header"
            )

        await self._renew(sent_token)

        request.headers[header] = self.session.token or ""
        yield request

    async def _renew(self, stale_token: str) -> None:
        async with self._renewal_lock:
            # Another request renewed the token while this one was waiting
            if self.session.token and self.session.token != stale_token:
                return
            await self.reauthenticate()
            log_event("session_renewed", self.log, state=self.session.state.value)


async def logon(client: "VeeamClient") -> LogonSession:
    """
    Open a session: discover the logon link from the API root, then post the
    Basic credentials to it and keep the token the server hands back.
    On failure the previous token and state are restored, so a failed renewal
    leaves the stale token in place for the next attempt.
    """
    session = client.session
    previous_token, previous_state = session.token, session.state
    session.state = AuthState.AUTHENTICATING
    try:
        api = await client.request_model(
            EnterpriseManager, "GET", API_ROOT, authenticated=False, tool="logon"
        )
        logon_uri = api.require_link_href(Rel.CREATE.value)

        response = await client.send(
            "POST",
            logon_uri,
            headers={"Authorization": f"Basic {client.credentials_hash}"},
            authenticated=False,
            tool="logon",
        )
        token = response.headers.get(session.token_header)
        if not token:
            raise VeeamProtocolError(
                f"Logon response did not carry the {session.token_header} header"
            )
    except BaseException:
        session.token = previous_token
        session.state = previous_state
        raise

    session.token = token
    session.state = AuthState.AUTHENTICATED
    log_event("session_logon", client.log, state=session.state.value)
    return client.decode_model(LogonSession, response)


async def logoff(client: "VeeamClient") -> int:
    """
    Close every logon session of the current user.
    Best-effort: a session that cannot be deleted is logged and skipped.
    Returns the number of sessions closed.
    """
    closed = 0
    try:
        sessions = await client.request_model(
            LogonSessionList, "GET", LOGON_SESSIONS, tool="logoff"
        )
        for item in sessions.items:
            try:
                await client.delete(item.require_link_href(Rel.DELETE.value))
            except VeeamClientError as exc:
                log_event(
                    "session_logoff_failed",
                    client.log,
                    level=logging.WARNING,
                    endpoint=item.href,
                    error_type=type(exc).__name__,
                )
                continue
            closed += 1
    finally:
        client.session.clear()

    log_event("session_logoff", client.log, sessions=closed)
    return closed


__all__ = [
    "AuthState",
    "Session",
    "SessionTokenAuth",
    "is_token_expired",
    "logon",
    "logoff",
    "DEFAULT_TOKEN_HEADER",
    "TOKEN_EXPIRED_MESSAGE",
]
