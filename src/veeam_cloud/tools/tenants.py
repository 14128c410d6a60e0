from __future__ import annotations

from typing import List, Optional

from veeam_cloud.client import VeeamClient
from veeam_cloud.errors import VeeamNotFoundError
from veeam_cloud.hal import find_reference
from veeam_cloud.models import (
    CloudTenant,
    CloudTenantComputeResourceCreateSpec,
    CreateCloudTenantResourceSpec,
    CreateCloudTenantSpec,
    EntityReferenceList,
)

TENANTS = "/api/cloud/tenants"


async def get_tenants(client: VeeamClient) -> EntityReferenceList:
    """List references to every cloud tenant."""
    return await client.get_model(EntityReferenceList, TENANTS, tool="tenants")


async def create_tenant(
    client: VeeamClient,
    spec: CreateCloudTenantSpec,
    *,
    backups: Optional[List[CreateCloudTenantResourceSpec]] = None,
    replicas: Optional[List[CloudTenantComputeResourceCreateSpec]] = None,
) -> Optional[CloudTenant]:
    """
    Create a tenant. Backup and replica resources given separately are added
    to the request before it is sent; the server creates everything in one task.
    """
    update = {}
    if backups is not None:
        update["resources"] = list(backups)
    if replicas is not None:
        update["compute_resources"] = list(replicas)
    if update:
        spec = spec.model_copy(update=update)

    return await client.post(TENANTS, body=spec, model=CloudTenant, tool="tenants")


async def create_tenant_basic(
    client: VeeamClient,
    name: str,
    password: str,
    backup_server_uid: str,
    *,
    description: Optional[str] = None,
    enabled: bool = True,
) -> Optional[CloudTenant]:
    """Create a tenant with the minimal information and no resources."""
    spec = CreateCloudTenantSpec(
        name=name,
        description=description,
        password=password,
        enabled=enabled,
        backup_server_uid=backup_server_uid,
    )
    return await create_tenant(client, spec)


async def get_tenant_by_id(client: VeeamClient, uid: str) -> CloudTenant:
    return await client.get_model(
        CloudTenant,
        f"{TENANTS}/{uid}",
        params={"format": "Entity"},
        tool="tenants",
    )


async def get_tenant_by_name(client: VeeamClient, name: str) -> CloudTenant:
    tenants = await get_tenants(client)
    ref = find_reference(tenants.items, name)
    if ref is None or not ref.id:
        raise VeeamNotFoundError(
            f"Tenant {name} not found", name=name, type="CloudTenant"
        )
    return await get_tenant_by_id(client, ref.id)


async def enable_tenant_by_id(
    client: VeeamClient, uid: str, password: str, enable: bool = True
) -> bool:
    """
    Change the Enabled flag of a tenant.
    The API requires the password with the update; a different value replaces
    the current one.
    """
    tenant = await get_tenant_by_id(client, uid)
    tenant = tenant.model_copy(update={"enabled": enable, "password": password})
    return await client.put(f"{TENANTS}/{uid}", body=tenant, tool="tenants")


async def enable_tenant_by_name(
    client: VeeamClient, name: str, password: str, enable: bool = True
) -> bool:
    tenant = await get_tenant_by_name(client, name)
    if not tenant.id:
        raise VeeamNotFoundError(
            f"Tenant {name} has no identifier", name=name, type="CloudTenant"
        )
    return await enable_tenant_by_id(client, tenant.id, password, enable)
