"""
Domain operations over the Veeam Enterprise Manager API.

Each function takes a VeeamClient first and maps one business operation onto
a path template.
"""

from .infrastructure import (
    get_backup_servers,
    get_cloud_hardware_plan_by_name,
    get_cloud_hardware_plans,
    get_cloud_replica_resources,
    get_repositories,
    get_vlans,
)
from .resources import (
    create_tenant_backup_resource,
    create_tenant_replica_resource,
    delete_tenant_backup_resource,
    delete_tenant_replica_resource,
    get_tenant_backup_resource,
    get_tenant_backup_resources,
    get_tenant_replica_resource,
    get_tenant_replica_resources,
    update_tenant_backup_resource,
    update_tenant_replica_resource,
)
from .sessions import get_logon_sessions
from .tenants import (
    create_tenant,
    create_tenant_basic,
    enable_tenant_by_id,
    enable_tenant_by_name,
    get_tenant_by_id,
    get_tenant_by_name,
    get_tenants,
)

__all__ = [
    # Tenants
    "get_tenants",
    "create_tenant",
    "create_tenant_basic",
    "get_tenant_by_id",
    "get_tenant_by_name",
    "enable_tenant_by_id",
    "enable_tenant_by_name",
    # Resources
    "create_tenant_backup_resource",
    "get_tenant_backup_resources",
    "get_tenant_backup_resource",
    "update_tenant_backup_resource",
    "delete_tenant_backup_resource",
    "create_tenant_replica_resource",
    "get_tenant_replica_resources",
    "get_tenant_replica_resource",
    "update_tenant_replica_resource",
    "delete_tenant_replica_resource",
    # Infrastructure
    "get_backup_servers",
    "get_repositories",
    "get_vlans",
    "get_cloud_hardware_plans",
    "get_cloud_hardware_plan_by_name",
    "get_cloud_replica_resources",
    # Sessions
    "get_logon_sessions",
]
