import base64

import pytest
from veeam_cloud.auth import DEFAULT_TOKEN_HEADER
from veeam_cloud.client import VeeamClient
from veeam_cloud.config import (
    create_client_from_env,
    credentials_hash,
    load_env_config,
)

ENV_VARS = (
    "VEEAM_HOST",
    "VEEAM_PORT",
    "VEEAM_SCHEME",
    "VEEAM_CREDENTIALS_HASH",
    "VEEAM_USERNAME",
    "VEEAM_PASSWORD",
    "VEEAM_TOKEN_HEADER",
    "VEEAM_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the tests
    monkeypatch.setattr("veeam_cloud.config.load_dotenv", lambda: False)


def test_credentials_hash_is_base64_of_user_and_password():
    hashed = credentials_hash("admin", "p@ss:word")
    assert base64.b64decode(hashed).decode("utf-8") == "admin:p@ss:word"


def test_defaults(monkeypatch):
    monkeypatch.setenv("VEEAM_HOST", "em.example")
    monkeypatch.setenv("VEEAM_CREDENTIALS_HASH", "abc")

    settings = load_env_config()

    assert settings.host == "em.example"
    assert settings.port == 9399
    assert settings.scheme == "http"
    assert settings.credentials_hash == "abc"
    assert settings.token_header == DEFAULT_TOKEN_HEADER
    assert settings.timeout_seconds is None


def test_username_and_password_are_hashed(monkeypatch):
    monkeypatch.setenv("VEEAM_HOST", "em.example")
    monkeypatch.setenv("VEEAM_USERNAME", "admin")
    monkeypatch.setenv("VEEAM_PASSWORD", "secret")

    settings = load_env_config(use_dotenv=False)

    assert settings.credentials_hash == credentials_hash("admin", "secret")


def test_explicit_hash_wins_over_username(monkeypatch):
    monkeypatch.setenv("VEEAM_CREDENTIALS_HASH", "explicit")
    monkeypatch.setenv("VEEAM_USERNAME", "admin")
    monkeypatch.setenv("VEEAM_PASSWORD", "secret")

    assert load_env_config(use_dotenv=False).credentials_hash == "explicit"


def test_overrides(monkeypatch):
    monkeypatch.setenv("VEEAM_HOST", "em.example")
    monkeypatch.setenv("VEEAM_CREDENTIALS_HASH", "abc")
    monkeypatch.setenv("VEEAM_PORT", "9398")
    monkeypatch.setenv("VEEAM_SCHEME", "HTTPS")
    monkeypatch.setenv("VEEAM_TOKEN_HEADER", "X-Custom-Session")
    monkeypatch.setenv("VEEAM_TIMEOUT_SECONDS", "12.5")

    settings = load_env_config()

    assert settings.port == 9398
    assert settings.scheme == "https"
    assert settings.token_header == "X-Custom-Session"
    assert settings.timeout_seconds == 12.5


@pytest.mark.parametrize(
    "name,value",
    [("VEEAM_PORT", "ninety"), ("VEEAM_TIMEOUT_SECONDS", "soon")],
)
def test_invalid_numbers_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        load_env_config()


@pytest.mark.asyncio
async def test_create_client_from_env(monkeypatch):
    monkeypatch.setenv("VEEAM_HOST", "em.example")
    monkeypatch.setenv("VEEAM_PORT", "9398")
    monkeypatch.setenv("VEEAM_SCHEME", "https")
    monkeypatch.setenv("VEEAM_CREDENTIALS_HASH", "abc")
    monkeypatch.setenv("VEEAM_TOKEN_HEADER", "X-Custom-Session")

    client = create_client_from_env(request_id="rid-env")
    try:
        assert isinstance(client, VeeamClient)
        assert client.base_url == "https://em.example:9398"
        assert client.credentials_hash == "abc"
        assert client.session.token_header == "X-Custom-Session"
        assert client.request_id == "rid-env"
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_from_env_classmethod(monkeypatch):
    monkeypatch.setenv("VEEAM_HOST", "em.example")
    monkeypatch.setenv("VEEAM_CREDENTIALS_HASH", "abc")

    client = VeeamClient.from_env()
    try:
        assert client.base_url == "http://em.example:9399"
    finally:
        await client.aclose()


@pytest.mark.parametrize(
    "env",
    [
        {"VEEAM_CREDENTIALS_HASH": "abc"},
        {"VEEAM_HOST": "em.example"},
        {"VEEAM_HOST": "em.example", "VEEAM_USERNAME": "admin"},
    ],
)
def test_missing_settings_raise(monkeypatch, env):
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match="VEEAM_HOST"):
        create_client_from_env()
