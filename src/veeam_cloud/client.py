import logging
import time
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Mapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
)
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ValidationError

from . import auth
from .auth import DEFAULT_TOKEN_HEADER, Session, SessionTokenAuth
from .codec import BodyCodec, XmlCodec
from .errors import (
    VeeamClientError,
    VeeamHTTPError,
    VeeamModelValidationError,
    VeeamParseError,
    VeeamProtocolError,
)
from .models import ErrorInfo, LogonSession, validate_model
from .observability import log_event
from .tasks import TaskPoller

T = TypeVar("T", bound=BaseModel)

DEFAULT_PORT = 9399


def _origin(scheme: str, netloc: str) -> Tuple[str, str, int]:
    """(scheme, host, port) with the scheme's default port filled in."""
    parts = urlsplit(f"{scheme}://{netloc}")
    scheme = scheme.lower()
    port = parts.port or (443 if scheme == "https" else 80)
    return scheme, (parts.hostname or "").lower(), port


class VeeamClient:
    """
    Shared HTTP client for the Veeam Enterprise Manager REST API.
    - Owns the session, the body codec and the underlying httpx client
    - Raises VeeamHTTPError on any non-2xx response, never retries on its own
    - Session renewal on token expiry is handled by SessionTokenAuth
    - No business logic; tools own domain decisions
    """

    def __init__(
        self,
        *,
        host: str,
        credentials_hash: str,
        port: int = DEFAULT_PORT,
        scheme: str = "http",
        token_header: str = DEFAULT_TOKEN_HEADER,
        codec: Optional[BodyCodec] = None,
        reauthenticate: Optional[Callable[[], Awaitable[object]]] = None,
        timeout_seconds: Optional[float] = None,
        request_id: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        host = (host or "").strip()
        credentials_hash = (credentials_hash or "").strip()

        if not host:
            raise ValueError("host must be provided.")
        if not credentials_hash:
            raise ValueError("credentials_hash must be provided.")
        if port <= 0:
            raise ValueError("port must be strictly positive.")

        self.base_url = f"{scheme}://{host}:{port}"
        self.credentials_hash = credentials_hash
        self.codec = codec or XmlCodec()
        self.request_id = request_id
        self.log = logger or logging.getLogger("veeam_cloud.client")

        self.session = Session(base_url=self.base_url, token_header=token_header)
        self.auth = SessionTokenAuth(
            self.session,
            reauthenticate or self.logon,
            self.codec,
        )
        self.tasks = TaskPoller(self)

        client_kwargs: Dict[str, Any] = {}
        if timeout_seconds is not None:
            client_kwargs["timeout"] = timeout_seconds

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": self.codec.media_type},
            **client_kwargs,
        )

    @classmethod
    def from_env(cls, **kwargs) -> "VeeamClient":
        from .config import create_client_from_env

        return create_client_from_env(**kwargs)

    @property
    def token(self) -> Optional[str]:
        return self.session.token

    # --- Session lifecycle ---

    async def logon(self) -> LogonSession:
        return await auth.logon(self)

    async def logoff(self) -> int:
        return await auth.logoff(self)

    async def open(self) -> "VeeamClient":
        await self.logon()
        return self

    async def close(self) -> None:
        """Best-effort logoff, then release the HTTP client."""
        try:
            if self.session.token:
                await self.logoff()
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "VeeamClient":
        try:
            return await self.open()
        except BaseException:
            await self.aclose()
            raise

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # --- Transport ---

    def relative_uri(self, uri: str) -> str:
        """
        Normalize a link from the server to a path relative to the base URL.
        Absolute URIs pointing anywhere else are refused.
        """
        parts = urlsplit(uri)
        if not parts.scheme and not parts.netloc:
            return uri

        if _origin(parts.scheme, parts.netloc) != _origin(
            *urlsplit(self.base_url)[:2]
        ):
            raise VeeamProtocolError(
                f"Refusing to follow {uri}: it is outside {self.base_url}"
            )

        relative = parts.path or "/"
        if parts.query:
            relative = f"{relative}?{parts.query}"
        return relative

    def _encode_body(
        self, body: Any, root: Optional[str]
    ) -> Optional[bytes]:
        if body is None:
            return None
        if isinstance(body, BaseModel):
            root = root or getattr(body, "xml_root", type(body).__name__)
            to_payload = getattr(body, "to_payload", None)
            payload = (
                to_payload()
                if callable(to_payload)
                else body.model_dump(mode="json", by_alias=True, exclude_none=True)
            )
        else:
            payload = dict(body)
        if not root:
            raise ValueError("An XML root element name is required for a mapping body.")
        return self.codec.encode(root, payload)

    async def send(
        self,
        method: str,
        uri: str,
        *,
        body: Any = None,
        root: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        authenticated: bool = True,
        tool: Optional[str] = None,
    ) -> httpx.Response:
        """
        Core request method.
        - Resolves `uri` against the base URL (absolute links are normalized)
        - Raises VeeamHTTPError on non-2xx HTTP responses
        - Raises VeeamClientError on network/timeout errors
        - Returns the raw 2xx response
        """
        method = method.upper()
        endpoint = self.relative_uri(uri)
        content = self._encode_body(body, root)

        request_headers: Dict[str, str] = dict(headers or {})
        # Injected http clients do not carry the codec's default headers
        request_headers.setdefault("Accept", self.codec.media_type)
        if content is not None:
            request_headers["Content-Type"] = self.codec.media_type

        start = time.perf_counter()
        try:
            resp = await self.http.request(
                method,
                endpoint,
                params=params,
                content=content,
                headers=request_headers,
                auth=self.auth if authenticated else None,
            )
        except httpx.HTTPError as exc:
            self._log_call(method, endpoint, start, tool, error=exc)
            raise VeeamClientError(
                f"HTTP error calling {method} {endpoint}: {exc}"
            ) from exc
        except VeeamClientError as exc:
            self._log_call(method, endpoint, start, tool, error=exc)
            raise

        self._log_call(method, endpoint, start, tool, status=resp.status_code)

        if resp.status_code < 200 or resp.status_code >= 300:
            raise self._to_http_error(resp, method=method, uri=endpoint)

        return resp

    def _log_call(
        self,
        method: str,
        endpoint: str,
        start: float,
        tool: Optional[str],
        *,
        status: Optional[int] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        fields: Dict[str, Any] = {
            "request_id": self.request_id,
            "tool": tool,
            "method": method,
            "endpoint": endpoint,
            "status": status if error is None else "exception",
            "duration_ms": int((time.perf_counter() - start) * 1000),
        }
        if error is not None:
            fields["error_type"] = type(error).__name__
        log_event("op_call", self.log, **fields)

    def _to_http_error(
        self, resp: httpx.Response, *, method: str, uri: str
    ) -> VeeamHTTPError:
        message = "request failed"
        response_text: Optional[str] = None

        try:
            error = validate_model(ErrorInfo, self.codec.decode(resp.content))
            if error is not None and error.message:
                message = error.message
        except VeeamParseError:
            response_text = (resp.text or "")[:500]

        return VeeamHTTPError(
            status_code=resp.status_code,
            method=method,
            uri=uri,
            url=str(resp.request.url),
            message=message,
            response_text=response_text,
        )

    def decode(self, resp: httpx.Response) -> Dict[str, Any]:
        return self.codec.decode(resp.content)

    def decode_model(self, model: Type[T], resp: httpx.Response) -> T:
        payload = self.decode(resp)
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise VeeamModelValidationError(
                f"Response did not match model {model.__name__}: {exc}"
            ) from exc

    async def request(self, method: str, uri: str, **kwargs: Any) -> Dict[str, Any]:
        resp = await self.send(method, uri, **kwargs)
        return self.decode(resp)

    async def request_model(
        self, model: Type[T], method: str, uri: str, **kwargs: Any
    ) -> T:
        resp = await self.send(method, uri, **kwargs)
        return self.decode_model(model, resp)

    async def get(
        self,
        uri: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        tool: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.request("GET", uri, params=params, tool=tool)

    async def get_model(
        self,
        model: Type[T],
        uri: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        tool: Optional[str] = None,
    ) -> T:
        return await self.request_model(model, "GET", uri, params=params, tool=tool)

    # --- Task-aware verbs ---

    async def post(
        self,
        uri: str,
        *,
        body: Any,
        model: Type[T],
        tool: Optional[str] = None,
    ) -> Optional[T]:
        """POST, wait for the resulting task and read the entity it produced."""
        resp = await self.send("POST", uri, body=body, tool=tool)
        return await self.tasks.read_task(resp, model)

    async def put(self, uri: str, *, body: Any, tool: Optional[str] = None) -> bool:
        resp = await self.send("PUT", uri, body=body, tool=tool)
        return await self.tasks.is_success(resp)

    async def delete(self, uri: str, *, tool: Optional[str] = None) -> bool:
        resp = await self.send("DELETE", uri, tool=tool)
        return await self.tasks.is_success(resp)


__all__ = ["VeeamClient", "DEFAULT_PORT"]
