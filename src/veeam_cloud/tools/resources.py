"""Backup (repository quota) and replica (hardware plan) resources of a tenant."""

from __future__ import annotations

from typing import Optional

from veeam_cloud.client import VeeamClient
from veeam_cloud.errors import VeeamAmbiguityError, VeeamNotFoundError
from veeam_cloud.models import (
    CloudTenantComputeResource,
    CloudTenantComputeResourceCreateSpec,
    CloudTenantComputeResourceList,
    CloudTenantResource,
    CloudTenantResourceList,
    CreateCloudTenantResourceSpec,
)


def _backup_resources(tenant_uid: str) -> str:
    return f"/api/cloud/tenants/{tenant_uid}/resources"


def _replica_resources(tenant_uid: str) -> str:
    return f"/api/cloud/tenants/{tenant_uid}/computeResources"


# --- Backup ---


async def create_tenant_backup_resource(
    client: VeeamClient, tenant_uid: str, resource: CreateCloudTenantResourceSpec
) -> Optional[CloudTenantResource]:
    return await client.post(
        _backup_resources(tenant_uid),
        body=resource,
        model=CloudTenantResource,
        tool="resources",
    )


async def get_tenant_backup_resources(
    client: VeeamClient, tenant_uid: str
) -> CloudTenantResourceList:
    return await client.get_model(
        CloudTenantResourceList, _backup_resources(tenant_uid), tool="resources"
    )


async def get_tenant_backup_resource(
    client: VeeamClient, tenant_uid: str, resource_id: str
) -> CloudTenantResource:
    return await client.get_model(
        CloudTenantResource,
        f"{_backup_resources(tenant_uid)}/{resource_id}",
        tool="resources",
    )


async def update_tenant_backup_resource(
    client: VeeamClient, tenant_uid: str, resource: CloudTenantResource
) -> Optional[CloudTenantResource]:
    """
    Replace a backup resource with the values of `resource`.
    The API cannot edit a quota in place: the resource is deleted and created
    again, so its used quota starts over.
    """
    quota = resource.repository_quota
    if not resource.id or quota is None or not quota.repository_uid:
        raise ValueError("resource must carry an id and a repository quota")

    spec = CreateCloudTenantResourceSpec(
        name=quota.display_name or "",
        repository_uid=quota.repository_uid,
        quota_mb=int(quota.quota or 0),
        wan_accelerator_uid=quota.wan_accelerator_uid,
    )
    await delete_tenant_backup_resource(client, tenant_uid, resource.id)
    return await create_tenant_backup_resource(client, tenant_uid, spec)


async def delete_tenant_backup_resource(
    client: VeeamClient, tenant_uid: str, resource_id: str
) -> bool:
    return await client.delete(
        f"{_backup_resources(tenant_uid)}/{resource_id}", tool="resources"
    )


# --- Replica ---


async def create_tenant_replica_resource(
    client: VeeamClient,
    tenant_uid: str,
    resource: CloudTenantComputeResourceCreateSpec,
) -> CloudTenantComputeResource:
    """
    Subscribe a tenant to a hardware plan, replacing any previous subscription
    to the same plan. The task does not link to the created resource, so it is
    looked up by hardware plan afterwards.
    """
    await client.post(
        _replica_resources(tenant_uid),
        body=resource,
        model=CloudTenantComputeResource,
        tool="resources",
    )

    existing = await get_tenant_replica_resources(client, tenant_uid)
    matches = [
        r
        for r in existing.items
        if r.cloud_hardware_plan_uid == resource.cloud_hardware_plan_uid
    ]
    if len(matches) > 1:
        raise VeeamAmbiguityError(
            f"Several compute resources of tenant {tenant_uid} use hardware plan "
            f"{resource.cloud_hardware_plan_uid}",
            candidates=[r.id or "" for r in matches],
        )
    if not matches:
        raise VeeamNotFoundError(
            f"The compute resource for tenant {tenant_uid} and "
            f"{resource.cloud_hardware_plan_uid} has not been found",
            name=resource.cloud_hardware_plan_uid,
            type="CloudTenantComputeResource",
        )
    return matches[0]


async def get_tenant_replica_resources(
    client: VeeamClient, tenant_uid: str
) -> CloudTenantComputeResourceList:
    return await client.get_model(
        CloudTenantComputeResourceList,
        _replica_resources(tenant_uid),
        tool="resources",
    )


async def get_tenant_replica_resource(
    client: VeeamClient, tenant_uid: str, resource_id: str
) -> CloudTenantComputeResource:
    return await client.get_model(
        CloudTenantComputeResource,
        f"{_replica_resources(tenant_uid)}/{resource_id}",
        tool="resources",
    )


async def update_tenant_replica_resource(
    client: VeeamClient, tenant_uid: str, resource: CloudTenantComputeResource
) -> CloudTenantComputeResource:
    if not resource.cloud_hardware_plan_uid:
        raise ValueError("resource must reference a hardware plan")

    spec = CloudTenantComputeResourceCreateSpec(
        cloud_hardware_plan_uid=resource.cloud_hardware_plan_uid,
        platform_type=resource.platform_type,
        use_network_failover_resources=resource.use_network_failover_resources,
        network_appliance=resource.network_appliance,
        wan_accelerator_uid=resource.wan_accelerator_uid,
    )
    return await create_tenant_replica_resource(client, tenant_uid, spec)


async def delete_tenant_replica_resource(
    client: VeeamClient, tenant_uid: str, resource_id: str
) -> bool:
    return await client.delete(
        f"{_replica_resources(tenant_uid)}/{resource_id}", tool="resources"
    )
