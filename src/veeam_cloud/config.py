from __future__ import annotations

import base64
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .auth import DEFAULT_TOKEN_HEADER
from .client import DEFAULT_PORT, VeeamClient


@dataclass(frozen=True)
class VeeamSettings:
    host: str
    port: int
    credentials_hash: str
    scheme: str = "http"
    token_header: str = DEFAULT_TOKEN_HEADER
    timeout_seconds: Optional[float] = None


def credentials_hash(username: str, password: str) -> str:
    """Base64 of 'username:password', as the logon Basic header expects."""
    return base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")


def _get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _get_float_env(name: str) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def load_env_config(*, use_dotenv: bool = True) -> VeeamSettings:
    """Load connection settings from the environment (optional .env)."""
    if use_dotenv:
        load_dotenv()

    hashed = os.getenv("VEEAM_CREDENTIALS_HASH", "").strip()
    if not hashed:
        username = os.getenv("VEEAM_USERNAME", "").strip()
        password = os.getenv("VEEAM_PASSWORD", "")
        if username and password:
            hashed = credentials_hash(username, password)

    return VeeamSettings(
        host=os.getenv("VEEAM_HOST", "").strip(),
        port=_get_int_env("VEEAM_PORT", DEFAULT_PORT),
        credentials_hash=hashed,
        scheme=os.getenv("VEEAM_SCHEME", "").strip().lower() or "http",
        token_header=os.getenv("VEEAM_TOKEN_HEADER", "").strip()
        or DEFAULT_TOKEN_HEADER,
        timeout_seconds=_get_float_env("VEEAM_TIMEOUT_SECONDS"),
    )


def create_client_from_env(**kwargs) -> VeeamClient:
    """Create a VeeamClient from environment variables."""
    settings = load_env_config()
    if not settings.host or not settings.credentials_hash:
        raise ValueError(
            "Missing VEEAM_HOST or VEEAM_CREDENTIALS_HASH "
            "(or VEEAM_USERNAME/VEEAM_PASSWORD) in environment."
        )
    options = {
        "host": settings.host,
        "port": settings.port,
        "credentials_hash": settings.credentials_hash,
        "scheme": settings.scheme,
        "token_header": settings.token_header,
        "timeout_seconds": settings.timeout_seconds,
    }
    options.update(kwargs)
    return VeeamClient(**options)


__all__ = [
    "VeeamSettings",
    "credentials_hash",
    "load_env_config",
    "create_client_from_env",
]
