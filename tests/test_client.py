import httpx
import pytest
import respx
from httpx import Response
from veeam_cloud.client import VeeamClient
from veeam_cloud.codec import JsonCodec
from veeam_cloud.errors import (
    VeeamClientError,
    VeeamHTTPError,
    VeeamModelValidationError,
    VeeamParseError,
    VeeamProtocolError,
)
from veeam_cloud.models import EntityReferenceList, Task

BASE = "http://veeam.local:9399"

TENANTS_XML = """<?xml version="1.0" encoding="utf-8"?>
<EntityReferences xmlns="http://www.veeam.com/ent/v1.0">
  <Ref UID="urn:veeam:CloudTenant:t-1" Name="Alpha" Href="http://veeam.local:9399/api/cloud/tenants/t-1" Type="CloudTenantReference">
    <Links>
      <Link Href="http://veeam.local:9399/api/cloud/tenants/t-1?format=Entity" Name="Alpha" Type="CloudTenant" Rel="Alternate" />
    </Links>
  </Ref>
  <Ref UID="urn:veeam:CloudTenant:t-2" Name="Beta" Href="http://veeam.local:9399/api/cloud/tenants/t-2" Type="CloudTenantReference" />
</EntityReferences>
"""

ERROR_XML = """<Error xmlns="http://www.veeam.com/ent/v1.0">
  <Message>Tenant not found</Message>
  <StatusCode>404</StatusCode>
</Error>"""


def _xml(status: int, body: str = "", **kwargs) -> Response:
    return Response(
        status,
        content=body.encode("utf-8"),
        headers={"Content-Type": "application/xml"},
        **kwargs,
    )


@pytest.fixture
def client():
    return VeeamClient(host="veeam.local", credentials_hash="dXNlcjpwYXNz")


@pytest.mark.asyncio
@respx.mock
async def test_get_returns_decoded_body(client):
    route = respx.get(f"{BASE}/api/cloud/tenants").mock(
        return_value=_xml(200, TENANTS_XML)
    )

    try:
        data = await client.get("/api/cloud/tenants")
    finally:
        await client.aclose()

    assert route.called
    assert [r["@Name"] for r in data["Ref"]] == ["Alpha", "Beta"]
    assert route.calls[0].request.headers["Accept"] == "application/xml"


@pytest.mark.asyncio
@respx.mock
async def test_send_returns_2xx_response_unmodified(client):
    for status in (200, 201, 202, 299):
        respx.get(f"{BASE}/api/status/{status}").mock(
            return_value=_xml(status, "<Ok/>")
        )

    try:
        for status in (200, 201, 202, 299):
            resp = await client.send("GET", f"/api/status/{status}")
            assert resp.status_code == status
            assert resp.content == b"<Ok/>"
    finally:
        await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_request_model_validates_payload(client):
    respx.get(f"{BASE}/api/cloud/tenants").mock(return_value=_xml(200, TENANTS_XML))

    try:
        tenants = await client.get_model(EntityReferenceList, "/api/cloud/tenants")
    finally:
        await client.aclose()

    assert tenants.names() == ["Alpha", "Beta"]
    assert tenants.items[0].id == "t-1"
    assert tenants.items[1].links == []


@pytest.mark.asyncio
@respx.mock
@pytest.mark.parametrize("status", [301, 400, 403, 404, 409, 500, 503])
async def test_non_2xx_raises_http_error_with_status_and_uri(client, status):
    respx.get(f"{BASE}/api/cloud/tenants/missing").mock(
        return_value=_xml(status, ERROR_XML)
    )

    try:
        with pytest.raises(VeeamHTTPError) as exc:
            await client.get("/api/cloud/tenants/missing")
    finally:
        await client.aclose()

    assert exc.value.status_code == status
    assert exc.value.uri == "/api/cloud/tenants/missing"
    assert exc.value.method == "GET"
    assert exc.value.message == "Tenant not found"
    assert "Tenant not found" in str(exc.value)


@pytest.mark.asyncio
@respx.mock
async def test_non_2xx_without_xml_keeps_text_snippet(client):
    respx.delete(f"{BASE}/api/cloud/tenants/t-1").mock(
        return_value=Response(502, text="<html>Bad gateway")
    )

    try:
        with pytest.raises(VeeamHTTPError) as exc:
            await client.send("DELETE", "/api/cloud/tenants/t-1")
    finally:
        await client.aclose()

    assert exc.value.status_code == 502
    assert exc.value.message == "request failed"
    assert "Bad gateway" in exc.value.response_text


@pytest.mark.asyncio
@respx.mock
async def test_no_retry_on_server_error(client):
    route = respx.get(f"{BASE}/api/repositories").mock(
        return_value=_xml(503, ERROR_XML)
    )

    try:
        with pytest.raises(VeeamHTTPError):
            await client.get("/api/repositories")
    finally:
        await client.aclose()

    assert route.call_count == 1


@pytest.mark.asyncio
@respx.mock
async def test_absolute_link_is_normalized_to_base(client):
    route = respx.get(f"{BASE}/api/cloud/tenants/t-1").mock(
        return_value=_xml(200, "<CloudTenant Name='Alpha'/>")
    )

    try:
        data = await client.get(f"{BASE}/api/cloud/tenants/t-1")
    finally:
        await client.aclose()

    assert route.called
    assert data == {"@Name": "Alpha"}


def test_relative_uri_rules(client):
    assert client.relative_uri("/api/") == "/api/"
    assert client.relative_uri(f"{BASE}/api/tasks/task-1") == "/api/tasks/task-1"
    assert (
        client.relative_uri("HTTP://VEEAM.local:9399/api/sessionMngr/?v=latest")
        == "/api/sessionMngr/?v=latest"
    )
    assert client.relative_uri(BASE) == "/"

    with pytest.raises(VeeamProtocolError):
        client.relative_uri("http://elsewhere.example:9399/api/tasks/1")
    with pytest.raises(VeeamProtocolError):
        client.relative_uri("https://veeam.local:9399/api/tasks/1")


@pytest.mark.asyncio
async def test_foreign_absolute_uri_is_never_sent(client):
    async with respx.mock(assert_all_called=False) as mock:
        route = mock.get("http://elsewhere.example/api/").mock(
            return_value=_xml(200, "<Ok/>")
        )
        try:
            with pytest.raises(VeeamProtocolError):
                await client.get("http://elsewhere.example/api/")
        finally:
            await client.aclose()

    assert not route.called


@pytest.mark.asyncio
@respx.mock
async def test_body_is_encoded_with_codec(client):
    route = respx.post(f"{BASE}/api/cloud/vlans").mock(return_value=_xml(204))

    try:
        resp = await client.send(
            "POST", "/api/cloud/vlans", body={"Name": "vlan-1"}, root="VlanSpec"
        )
    finally:
        await client.aclose()

    assert resp.status_code == 204
    request = route.calls[0].request
    assert request.headers["Content-Type"] == "application/xml"
    assert b"<VlanSpec" in request.content
    assert b"<Name>vlan-1</Name>" in request.content


@pytest.mark.asyncio
async def test_mapping_body_requires_root(client):
    try:
        with pytest.raises(ValueError):
            await client.send("POST", "/api/cloud/vlans", body={"Name": "x"})
    finally:
        await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_json_codec_is_pluggable():
    client = VeeamClient(
        host="veeam.local", credentials_hash="dXNlcjpwYXNz", codec=JsonCodec()
    )
    route = respx.get(f"{BASE}/api/cloud/tenants").mock(
        return_value=Response(200, json={"Ref": [{"Name": "Alpha"}]})
    )

    try:
        tenants = await client.get_model(EntityReferenceList, "/api/cloud/tenants")
    finally:
        await client.aclose()

    assert tenants.names() == ["Alpha"]
    assert route.calls[0].request.headers["Accept"] == "application/json"


@pytest.mark.asyncio
@respx.mock
async def test_injected_http_client_negotiates_codec_media_type():
    http = httpx.AsyncClient(base_url=BASE)
    client = VeeamClient(
        host="veeam.local",
        credentials_hash="dXNlcjpwYXNz",
        codec=JsonCodec(),
        http=http,
    )
    route = respx.get(f"{BASE}/api/cloud/tenants").mock(
        return_value=Response(200, json={"Ref": [{"Name": "Alpha"}]})
    )

    try:
        tenants = await client.get_model(EntityReferenceList, "/api/cloud/tenants")
    finally:
        await http.aclose()

    assert tenants.names() == ["Alpha"]
    assert route.calls[0].request.headers["Accept"] == "application/json"


@pytest.mark.asyncio
@respx.mock
async def test_malformed_body_raises_parse_error(client):
    respx.get(f"{BASE}/api/cloud/tenants").mock(
        return_value=Response(200, text="<html>Not XML")
    )

    try:
        with pytest.raises(VeeamParseError) as exc:
            await client.get("/api/cloud/tenants")
    finally:
        await client.aclose()

    assert "Expected XML" in str(exc.value)


@pytest.mark.asyncio
@respx.mock
async def test_model_mismatch_raises_validation_error(client):
    respx.get(f"{BASE}/api/tasks/task-1").mock(
        return_value=_xml(200, "<Task><Links><Link Rel='Delete'/></Links></Task>")
    )

    try:
        with pytest.raises(VeeamModelValidationError):
            await client.get_model(Task, "/api/tasks/task-1")
    finally:
        await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_empty_body_decodes_to_empty_dict(client):
    respx.delete(f"{BASE}/api/cloud/tenants/t-1").mock(return_value=Response(204))

    try:
        data = await client.request("DELETE", "/api/cloud/tenants/t-1")
    finally:
        await client.aclose()

    assert data == {}


@pytest.mark.asyncio
@respx.mock
async def test_connect_error_is_wrapped(client):
    respx.get(f"{BASE}/api/cloud/tenants").mock(
        side_effect=httpx.ConnectTimeout("boom")
    )

    try:
        with pytest.raises(VeeamClientError) as exc:
            await client.get("/api/cloud/tenants")
    finally:
        await client.aclose()

    assert isinstance(exc.value.__cause__, httpx.ConnectTimeout)


def test_constructor_validation():
    with pytest.raises(ValueError):
        VeeamClient(host="", credentials_hash="abc")
    with pytest.raises(ValueError):
        VeeamClient(host="veeam.local", credentials_hash="")
    with pytest.raises(ValueError):
        VeeamClient(host="veeam.local", credentials_hash="abc", port=0)


def test_base_url_from_host_and_port():
    client = VeeamClient(
        host="em.example", port=9398, scheme="https", credentials_hash="abc"
    )
    assert client.base_url == "https://em.example:9398"
    assert client.session.base_url == client.base_url
    assert client.token is None
