import json
from unittest.mock import patch

import httpx
import pytest

from oreocat.core.settings import settings
from oreocat.services import storage
from oreocat.services.storage import StorageError

API = "https://project.supabase.co/storage/v1"


def _client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=settings.storage_api_url,
        headers={"Authorization": "Bearer key", "apikey": "key"},
    )


@pytest.mark.asyncio
async def test_upload_file_posts_bytes_without_upsert():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Key": "public-images/uploads/abc-a.png", "Id": "1"})

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            path = await storage.upload_file("public-images", "uploads/abc-a.png", b"PNGDATA", "image/png")

    assert path == "uploads/abc-a.png"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{API}/object/public-images/uploads/abc-a.png"
    assert request.headers["x-upsert"] == "false"
    assert request.headers["content-type"] == "image/png"
    assert request.headers["apikey"] == "key"
    assert request.content == b"PNGDATA"


@pytest.mark.asyncio
async def test_upload_file_duplicate_raises_with_upstream_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"},
        )

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            with pytest.raises(StorageError) as exc_info:
                await storage.upload_file("public-images", "uploads/x.png", b"x", "image/png")

    assert exc_info.value.message == "The resource already exists"
    assert exc_info.value.upstream_status == 400


@pytest.mark.asyncio
async def test_request_error_without_json_body_uses_reason_phrase():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            with pytest.raises(StorageError) as exc_info:
                await storage.list_files("public-images", "uploads", limit=20)

    assert exc_info.value.message == "Bad Gateway"


@pytest.mark.asyncio
async def test_transport_failure_becomes_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            with pytest.raises(StorageError, match="unreachable"):
                await storage.upload_file("public-images", "uploads/x.png", b"x", "image/png")


@pytest.mark.asyncio
async def test_list_files_sends_newest_first_query():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == f"{API}/object/list/public-images"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=[{"name": "b.png", "id": "2"}, {"name": "a.png", "id": "1"}])

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            items = await storage.list_files("public-images", "users/42/uploads", limit=20)

    assert [i["name"] for i in items] == ["b.png", "a.png"]
    assert bodies[0] == {
        "prefix": "users/42/uploads",
        "limit": 20,
        "offset": 0,
        "sortBy": {"column": "created_at", "order": "desc"},
    }


@pytest.mark.asyncio
async def test_create_signed_url_returns_absolute_url():
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == f"{API}/object/sign/public-images/uploads/a.png"
        assert json.loads(request.content) == {"expiresIn": 3600}
        return httpx.Response(200, json={"signedURL": "/object/sign/public-images/uploads/a.png?token=t"})

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            url = await storage.create_signed_url("public-images", "uploads/a.png", 3600)

    assert url == f"{API}/object/sign/public-images/uploads/a.png?token=t"


@pytest.mark.asyncio
async def test_create_signed_url_not_found_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"statusCode": "404", "error": "not_found", "message": "Object not found"})

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            with pytest.raises(StorageError, match="Object not found"):
                await storage.create_signed_url("public-images", "uploads/gone.png", 3600)


@pytest.mark.asyncio
async def test_create_signed_urls_single_batch_call():
    calls: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == f"{API}/object/sign/public-images"
        calls.append(json.loads(request.content))
        return httpx.Response(
            200,
            json=[
                {"path": "uploads/a.png", "signedURL": "/object/sign/public-images/uploads/a.png?token=1", "error": None},
                {"path": "uploads/b.png", "signedURL": None, "error": "Either the object does not exist"},
            ],
        )

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            result = await storage.create_signed_urls("public-images", ["uploads/a.png", "uploads/b.png"], 3600)

    assert len(calls) == 1
    assert calls[0] == {"expiresIn": 3600, "paths": ["uploads/a.png", "uploads/b.png"]}
    assert result[0]["signedUrl"] == f"{API}/object/sign/public-images/uploads/a.png?token=1"
    assert result[1]["signedUrl"] is None
    assert result[1]["error"] == "Either the object does not exist"


def test_get_public_url():
    assert (
        storage.get_public_url("public-images", "uploads/a.png")
        == f"{API}/object/public/public-images/uploads/a.png"
    )


def test_object_url_quotes_unsafe_path_characters():
    assert storage._object_url("object", "b", "users/github|7/uploads/x.png") == (
        "/object/b/users/github%7C7/uploads/x.png"
    )


@pytest.mark.asyncio
async def test_upload_file_streams_chunks_with_declared_length():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Key": "public-images/uploads/big.bin"})

    async def chunks():
        yield b"part-one|"
        yield b"part-two"

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            await storage.upload_file(
                "public-images", "uploads/big.bin", chunks(), "application/octet-stream", size=17
            )

    request = seen[0]
    assert request.content == b"part-one|part-two"
    assert request.headers["content-length"] == "17"
    assert "transfer-encoding" not in request.headers


@pytest.mark.asyncio
async def test_success_with_non_json_body_raises_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"")

    async with _client_for(handler) as client:
        with patch.object(storage, "_get_client", return_value=client):
            with pytest.raises(StorageError) as exc_info:
                await storage.upload_file("public-images", "uploads/x.png", b"x", "image/png")

    assert exc_info.value.message == "Storage returned an invalid response."
    assert exc_info.value.upstream_status == 200
