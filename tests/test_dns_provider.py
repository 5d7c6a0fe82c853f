import json

import httpx
import pytest

from app.core.errors import ProviderError, ProviderUnavailable
from app.services.dns_provider import CloudflareClient


def make_client(handler):
    return CloudflareClient(
        api_token="token-123",
        zone_id="zone-1",
        base_url="https://cf.test/client/v4",
        transport=httpx.MockTransport(handler),
    )


def ok(result=None):
    return httpx.Response(200, json={"success": True, "errors": [], "result": result or {}})


@pytest.mark.asyncio
async def test_create_record_sends_payload_and_returns_id():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return ok({"id": "cf-record-1"})

    client = make_client(handler)
    record_id = await client.create_record("alpha.example.test", "A", "203.0.113.5", True)
    await client.aclose()

    assert record_id == "cf-record-1"
    assert seen["method"] == "POST"
    assert seen["url"] == "https://cf.test/client/v4/zones/zone-1/dns_records"
    assert seen["auth"] == "Bearer token-123"
    assert seen["body"] == {
        "type": "A",
        "name": "alpha.example.test",
        "content": "203.0.113.5",
        "ttl": 1,
        "proxied": True,
    }


@pytest.mark.asyncio
async def test_update_record_patches_content_and_proxied():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return ok({"id": "cf-record-1"})

    client = make_client(handler)
    await client.update_record("cf-record-1", "198.51.100.7", False)

    assert seen == {
        "method": "PATCH",
        "path": "/client/v4/zones/zone-1/dns_records/cf-record-1",
        "body": {"content": "198.51.100.7", "proxied": False},
    }


@pytest.mark.asyncio
async def test_client_error_is_request_rejected():
    def handler(request):
        return httpx.Response(
            400, json={"success": False, "errors": [{"code": 81057, "message": "Record already exists."}]}
        )

    client = make_client(handler)
    with pytest.raises(ProviderError) as exc:
        await client.create_record("alpha.example.test", "A", "203.0.113.5", False)

    assert not isinstance(exc.value, ProviderUnavailable)
    assert "Record already exists." in exc.value.detail


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 500, 503])
async def test_server_errors_are_unavailable(status):
    client = make_client(lambda request: httpx.Response(status, text="upstream trouble"))

    with pytest.raises(ProviderUnavailable):
        await client.update_record("cf-record-1", "198.51.100.7", False)


@pytest.mark.asyncio
async def test_timeout_is_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = make_client(handler)
    with pytest.raises(ProviderUnavailable):
        await client.delete_record("cf-record-1")


@pytest.mark.asyncio
async def test_unsuccessful_envelope_is_rejected():
    client = make_client(
        lambda request: httpx.Response(200, json={"success": False, "errors": [{"message": "nope"}]})
    )

    with pytest.raises(ProviderError):
        await client.create_record("alpha.example.test", "A", "203.0.113.5", False)


@pytest.mark.asyncio
async def test_missing_record_id_is_rejected():
    client = make_client(lambda request: ok({}))

    with pytest.raises(ProviderError):
        await client.create_record("alpha.example.test", "A", "203.0.113.5", False)


@pytest.mark.asyncio
async def test_delete_of_missing_record_succeeds():
    client = make_client(
        lambda request: httpx.Response(404, json={"success": False, "errors": [{"message": "not found"}]})
    )

    await client.delete_record("cf-record-gone")


@pytest.mark.asyncio
async def test_undecodable_response_is_unavailable():
    def handler(request):
        raise httpx.DecodingError("bad gzip stream", request=request)

    client = make_client(handler)
    with pytest.raises(ProviderUnavailable):
        await client.delete_record("cf-record-1")


@pytest.mark.asyncio
async def test_unexpected_error_body_shape_is_rejected():
    client = make_client(lambda request: httpx.Response(400, json=["not", "an", "envelope"]))

    with pytest.raises(ProviderError) as exc:
        await client.update_record("cf-record-1", "198.51.100.7", False)
    assert "HTTP 400 error" in exc.value.detail


@pytest.mark.asyncio
async def test_non_object_success_body_is_rejected():
    client = make_client(lambda request: httpx.Response(200, json=[{"id": "cf-record-1"}]))

    with pytest.raises(ProviderError):
        await client.create_record("alpha.example.test", "A", "203.0.113.5", False)
