from __future__ import annotations

from veeam_cloud.client import VeeamClient
from veeam_cloud.hal import resolve_entity_href
from veeam_cloud.models import CloudHardwarePlan, EntityReferenceList

HARDWARE_PLAN_TYPE = "CloudHardwarePlan"


async def get_backup_servers(client: VeeamClient) -> EntityReferenceList:
    return await client.get_model(
        EntityReferenceList, "/api/backupServers", tool="infrastructure"
    )


async def get_repositories(client: VeeamClient) -> EntityReferenceList:
    return await client.get_model(
        EntityReferenceList, "/api/repositories", tool="infrastructure"
    )


async def get_vlans(client: VeeamClient) -> EntityReferenceList:
    return await client.get_model(
        EntityReferenceList, "/api/cloud/vlans", tool="infrastructure"
    )


async def get_cloud_hardware_plans(client: VeeamClient) -> EntityReferenceList:
    return await client.get_model(
        EntityReferenceList, "/api/cloud/hardwareplans", tool="infrastructure"
    )


async def get_cloud_hardware_plan_by_name(
    client: VeeamClient, name: str
) -> CloudHardwarePlan:
    """Follow the CloudHardwarePlan link of the plan reference called `name`."""
    plans = await get_cloud_hardware_plans(client)
    href = resolve_entity_href(plans.items, name, HARDWARE_PLAN_TYPE)
    return await client.get_model(
        CloudHardwarePlan, client.relative_uri(href), tool="infrastructure"
    )


async def get_cloud_replica_resources(client: VeeamClient) -> EntityReferenceList:
    return await client.get_model(
        EntityReferenceList, "/api/cloud/replicas", tool="infrastructure"
    )
