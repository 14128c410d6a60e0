from typing import Optional


class VeeamClientError(Exception):
    """Base error for client failures."""


class VeeamHTTPError(VeeamClientError):
    """Response status outside the 2xx range."""

    def __init__(
        self,
        *,
        status_code: int,
        method: str,
        uri: str,
        url: str,
        message: str,
        response_text: Optional[str] = None,
    ):
        super().__init__(f"{status_code} {method} {uri}: {message}")
        self.status_code = status_code
        self.method = method
        self.uri = uri
        self.url = url
        self.message = message
        self.response_text = response_text


class VeeamProtocolError(VeeamClientError):
    """The server (or the caller) broke the session or hypermedia contract."""


class VeeamAmbiguityError(VeeamProtocolError):
    def __init__(self, message: str, *, candidates: list[str]):
        super().__init__(message)
        self.candidates = candidates


class VeeamNotFoundError(VeeamClientError):
    def __init__(self, message: str, *, name: str, type: Optional[str] = None):
        super().__init__(message)
        self.name = name
        self.type = type


class VeeamTaskTimeoutError(VeeamClientError):
    def __init__(self, uri: str, *, waited_seconds: float):
        super().__init__(
            f"The task {uri} did not finish within {waited_seconds:g} seconds"
        )
        self.uri = uri
        self.waited_seconds = waited_seconds


class VeeamTaskFailedError(VeeamClientError):
    def __init__(self, reason: str, *, uri: Optional[str] = None):
        super().__init__(reason or "Task failed without a reason")
        self.reason = reason
        self.uri = uri


class VeeamParseError(VeeamClientError):
    pass


class VeeamModelValidationError(VeeamClientError):
    pass


__all__ = [
    "VeeamClientError",
    "VeeamHTTPError",
    "VeeamProtocolError",
    "VeeamAmbiguityError",
    "VeeamNotFoundError",
    "VeeamTaskTimeoutError",
    "VeeamTaskFailedError",
    "VeeamParseError",
    "VeeamModelValidationError",
]
