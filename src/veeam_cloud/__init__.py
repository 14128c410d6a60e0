"""veeam_cloud package exports."""

from .auth import (
    DEFAULT_TOKEN_HEADER,
    TOKEN_EXPIRED_MESSAGE,
    AuthState,
    Session,
    SessionTokenAuth,
    logoff,
    logon,
)
from .client import VeeamClient
from .codec import BodyCodec, JsonCodec, XmlCodec
from .config import (
    VeeamSettings,
    create_client_from_env,
    credentials_hash,
    load_env_config,
)
from .errors import (
    VeeamAmbiguityError,
    VeeamClientError,
    VeeamHTTPError,
    VeeamModelValidationError,
    VeeamNotFoundError,
    VeeamParseError,
    VeeamProtocolError,
    VeeamTaskFailedError,
    VeeamTaskTimeoutError,
)
from .hal import (
    find_link,
    find_link_href,
    find_reference,
    parse_uid,
    require_link_href,
    resolve_entity_href,
)
from .tasks import TaskPoller

__all__ = [
    # Client
    "VeeamClient",
    "TaskPoller",
    # Session
    "Session",
    "SessionTokenAuth",
    "AuthState",
    "logon",
    "logoff",
    "DEFAULT_TOKEN_HEADER",
    "TOKEN_EXPIRED_MESSAGE",
    # Codecs
    "BodyCodec",
    "XmlCodec",
    "JsonCodec",
    # Exceptions
    "VeeamClientError",
    "VeeamHTTPError",
    "VeeamProtocolError",
    "VeeamAmbiguityError",
    "VeeamNotFoundError",
    "VeeamTaskTimeoutError",
    "VeeamTaskFailedError",
    "VeeamParseError",
    "VeeamModelValidationError",
    # Link utilities
    "find_link",
    "find_link_href",
    "require_link_href",
    "find_reference",
    "resolve_entity_href",
    "parse_uid",
    # Config helpers
    "VeeamSettings",
    "credentials_hash",
    "load_env_config",
    "create_client_from_env",
]
