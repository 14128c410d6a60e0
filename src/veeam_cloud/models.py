from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_pascal

from . import hal
from .codec import ATTRIBUTE_PREFIX, TEXT_KEY

T = TypeVar("T", bound=BaseModel)

# Hypermedia controls; never sent back to the server
HAL_FIELDS = frozenset({"links"})


class Rel(str, Enum):
    CREATE = "Create"
    DELETE = "Delete"
    RELATED = "Related"
    ALTERNATE = "Alternate"
    EDIT = "Edit"


class TaskState(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    FINISHED = "Finished"


def _as_list(value: Any, wrapper: Optional[str] = None) -> List[Any]:
    """
    XML collections decode to a single dict when they hold one element, a list
    when they hold several and None when empty; normalize to a list.
    """
    if value is None or value == "":
        return []
    if wrapper and isinstance(value, dict) and wrapper in value:
        value = value[wrapper]
    if isinstance(value, list):
        return value
    return [value]


class XmlModel(BaseModel):
    """
    Base for documents decoded by a codec.
    Attributes arrive as "@Name" keys; a declared field accepts its attribute
    as well as an element of the same name. Undeclared attributes keep their
    prefix so they are written back as attributes.
    """

    @model_validator(mode="before")
    @classmethod
    def _unprefix_attributes(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        declared = {field.alias or name for name, field in cls.model_fields.items()}
        result: Dict[str, Any] = {}
        for key, value in data.items():
            if (
                isinstance(key, str)
                and key.startswith(ATTRIBUTE_PREFIX)
                and key[len(ATTRIBUTE_PREFIX) :] in declared
            ):
                result.setdefault(key[len(ATTRIBUTE_PREFIX) :], value)
            else:
                result[key] = value
        return result


class Link(XmlModel):
    href: str = Field(alias="Href")
    rel: Optional[str] = Field(default=None, alias="Rel")
    type: Optional[str] = Field(default=None, alias="Type")
    name: Optional[str] = Field(default=None, alias="Name")

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class BaseHALModel(XmlModel):
    """
    Base model for hypermedia entities.
    Every entity carries its own Href/Type attributes and a <Links> collection.
    """

    href: Optional[str] = Field(default=None, alias="Href")
    type: Optional[str] = Field(default=None, alias="Type")
    links: List[Link] = Field(default_factory=list, alias="Links")

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="ignore"
    )

    @field_validator("links", mode="before")
    @classmethod
    def _normalize_links(cls, value: Any) -> List[Any]:
        return _as_list(value, "Link")

    def link_href(self, rel: str, type: Optional[str] = None) -> Optional[str]:
        return hal.find_link_href(self.links, rel=rel, type=type)

    def require_link_href(self, rel: str, type: Optional[str] = None) -> str:
        return hal.require_link_href(self.links, rel=rel, type=type)


class RequestBody(BaseModel):
    """A payload sent to the server; `xml_root` names the document element."""

    xml_root: ClassVar[str]

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="forbid"
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Protocol documents ---


class ErrorInfo(XmlModel):
    message: Optional[str] = None
    status_code: Optional[int] = None

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="ignore"
    )


class EnterpriseManager(BaseHALModel):
    pass


class LogonSession(BaseHALModel):
    uid: Optional[str] = Field(default=None, alias="UID")
    user_name: Optional[str] = None
    session_id: Optional[str] = None


class LogonSessionList(XmlModel):
    items: List[LogonSession] = Field(default_factory=list, alias="LogonSession")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("items", mode="before")
    @classmethod
    def _normalize_items(cls, value: Any) -> List[Any]:
        return _as_list(value)


class TaskResult(XmlModel):
    success: bool = Field(alias="Success")
    message: Optional[str] = Field(
        default=None, validation_alias=AliasChoices(TEXT_KEY, "Message")
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Task(BaseHALModel):
    task_id: Optional[str] = None
    state: Optional[str] = None
    operation: Optional[str] = None
    result: Optional[TaskResult] = None

    @property
    def is_finished(self) -> bool:
        return self.state == TaskState.FINISHED.value

    @property
    def task_status_uri(self) -> str:
        # The API exposes the task's own status URI under the "Delete" relation.
        # It is polled with GET and never deleted.
        return self.require_link_href(Rel.DELETE.value)

    @classmethod
    def finished(cls) -> "Task":
        return cls(state=TaskState.FINISHED.value, result=TaskResult(success=True))


class EntityReference(BaseHALModel):
    uid: Optional[str] = Field(default=None, alias="UID")
    name: Optional[str] = None

    @property
    def id(self) -> Optional[str]:
        return hal.parse_uid(self.uid)


class EntityReferenceList(XmlModel):
    items: List[EntityReference] = Field(default_factory=list, alias="Ref")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("items", mode="before")
    @classmethod
    def _normalize_items(cls, value: Any) -> List[Any]:
        return _as_list(value)

    def names(self) -> List[str]:
        return [r.name for r in self.items if r.name]


# --- Cloud tenants ---


class CloudTenant(BaseHALModel):
    """
    Tenant entity. Unknown elements are kept so an entity read from the server
    can be sent back with PUT without dropping fields.
    """

    xml_root: ClassVar[str] = "CloudTenant"
    # Fields carried as attributes of the <CloudTenant> element
    xml_attributes: ClassVar[frozenset] = frozenset({"href", "type", "name", "uid"})

    uid: Optional[str] = Field(default=None, alias="UID")
    name: Optional[str] = None
    description: Optional[str] = None
    password: Optional[str] = None
    enabled: Optional[bool] = None
    lease_expiration_enabled: Optional[bool] = None
    lease_expiration_date: Optional[str] = None
    backup_server_uid: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="allow"
    )

    @property
    def id(self) -> Optional[str]:
        return hal.parse_uid(self.uid)

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude=set(HAL_FIELDS)
        )
        for name in self.xml_attributes:
            alias = type(self).model_fields[name].alias or name
            if alias in payload:
                payload[ATTRIBUTE_PREFIX + alias] = payload.pop(alias)
        return payload


class CreateCloudTenantResourceSpec(RequestBody):
    xml_root: ClassVar[str] = "CreateCloudTenantResourceSpec"

    name: str
    repository_uid: str
    quota_mb: int
    wan_accelerator_uid: Optional[str] = None


class CloudTenantComputeResourceCreateSpec(RequestBody):
    xml_root: ClassVar[str] = "CloudTenantComputeResourceCreateSpec"

    cloud_hardware_plan_uid: str
    platform_type: Optional[str] = None
    use_network_failover_resources: Optional[bool] = None
    network_appliance: Optional[Dict[str, Any]] = None
    wan_accelerator_uid: Optional[str] = None


class CreateCloudTenantSpec(RequestBody):
    xml_root: ClassVar[str] = "CreateCloudTenantSpec"

    name: str
    description: Optional[str] = None
    password: str
    enabled: bool = True
    lease_expiration_date: Optional[str] = None
    resources: Optional[List[CreateCloudTenantResourceSpec]] = None
    compute_resources: Optional[List[CloudTenantComputeResourceCreateSpec]] = None
    backup_server_uid: str

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        # Nested collections are wrapped in an element per item
        if "Resources" in payload:
            payload["Resources"] = {"BackupResource": payload["Resources"]}
        if "ComputeResources" in payload:
            payload["ComputeResources"] = {
                "ComputeResource": payload["ComputeResources"]
            }
        return payload


# --- Tenant resources ---


class RepositoryQuota(XmlModel):
    display_name: Optional[str] = None
    repository_uid: Optional[str] = None
    wan_accelerator_uid: Optional[str] = None
    quota: Optional[int] = None
    used_quota: Optional[int] = None
    repository_quota_path: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="ignore"
    )


class CloudTenantResource(BaseHALModel):
    id: Optional[str] = None
    repository_quota: Optional[RepositoryQuota] = None


class CloudTenantResourceList(XmlModel):
    items: List[CloudTenantResource] = Field(
        default_factory=list, alias="CloudTenantResource"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("items", mode="before")
    @classmethod
    def _normalize_items(cls, value: Any) -> List[Any]:
        return _as_list(value)


class CloudTenantComputeResource(BaseHALModel):
    id: Optional[str] = None
    cloud_hardware_plan_uid: Optional[str] = None
    platform_type: Optional[str] = None
    use_network_failover_resources: Optional[bool] = None
    network_appliance: Optional[Dict[str, Any]] = None
    wan_accelerator_uid: Optional[str] = None


class CloudTenantComputeResourceList(XmlModel):
    items: List[CloudTenantComputeResource] = Field(
        default_factory=list, alias="CloudTenantComputeResource"
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("items", mode="before")
    @classmethod
    def _normalize_items(cls, value: Any) -> List[Any]:
        return _as_list(value)


# --- Infrastructure ---


class CloudHardwarePlan(BaseHALModel):
    uid: Optional[str] = Field(default=None, alias="UID")
    name: Optional[str] = None
    description: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_pascal, populate_by_name=True, extra="allow"
    )


def validate_model(model: Type[T], payload: Dict[str, Any]) -> Optional[T]:
    """Validate a payload, returning None when it does not fit the model."""
    try:
        return model.model_validate(payload)
    except ValidationError:
        return None
