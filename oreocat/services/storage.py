import logging
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx

from oreocat.core.errors import UpstreamError
from oreocat.core.settings import settings

logger = logging.getLogger(__name__)

# Singleton client: created on first use, closed on app shutdown.
_storage_client: httpx.AsyncClient | None = None


class StorageError(UpstreamError):
    """Supabase Storage rejected a request, or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = status_code


def _get_client() -> httpx.AsyncClient:
    global _storage_client
    if _storage_client is None:
        key = settings.SUPABASE_SECRET_KEY
        _storage_client = httpx.AsyncClient(
            base_url=settings.storage_api_url,
            headers={"Authorization": f"Bearer {key}", "apikey": key},
        )
    return _storage_client


async def close_client() -> None:
    global _storage_client
    if _storage_client is not None:
        await _storage_client.aclose()
        _storage_client = None


def _object_url(*parts: str) -> str:
    return "/" + "/".join(quote(p, safe="/") for p in parts)


def _absolute(signed_path: str | None) -> str | None:
    """Supabase returns signed URLs relative to the storage API root."""
    if not signed_path:
        return None
    return f"{settings.storage_api_url}/{signed_path.lstrip('/')}"


async def _request(method: str, url: str, **kwargs: Any) -> Any:
    try:
        resp = await _get_client().request(method, url, **kwargs)
    except httpx.HTTPError as err:
        raise StorageError(f"Storage service unreachable: {err}") from err

    if resp.is_error:
        message = resp.reason_phrase or "Storage request failed."
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or message
        raise StorageError(str(message), status_code=resp.status_code)
    try:
        return resp.json()
    except ValueError as err:
        raise StorageError("Storage returned an invalid response.", status_code=resp.status_code) from err


async def upload_file(
    bucket: str,
    object_path: str,
    content: bytes | AsyncIterator[bytes],
    content_type: str,
    size: int | None = None,
) -> str:
    """Write ``content`` at ``object_path``; never overwrites an existing object.

    ``content`` may be an async iterator of chunks so the upload is streamed
    rather than held in memory. Returns the object path relative to the bucket.
    """
    headers = {"Content-Type": content_type, "x-upsert": "false"}
    if size is not None:
        headers["Content-Length"] = str(size)
    try:
        await _request(
            "POST",
            _object_url("object", bucket, object_path),
            content=content,
            headers=headers,
        )
    except StorageError as exc:
        logger.warning("Storage upload failed for %s/%s: %s", bucket, object_path, exc.message)
        raise
    return object_path


async def list_files(
    bucket: str,
    prefix: str,
    limit: int,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """List objects directly under ``prefix``, newest first."""
    try:
        items = await _request(
            "POST",
            _object_url("object", "list", bucket),
            json={
                "prefix": prefix,
                "limit": limit,
                "offset": offset,
                "sortBy": {"column": "created_at", "order": "desc"},
            },
        )
    except StorageError as exc:
        logger.warning("Storage list failed for %s/%s: %s", bucket, prefix, exc.message)
        raise
    return items or []


async def create_signed_url(bucket: str, object_path: str, expires_in: int) -> str | None:
    """Return an absolute read URL for one object, valid for ``expires_in`` seconds."""
    try:
        data = await _request(
            "POST",
            _object_url("object", "sign", bucket, object_path),
            json={"expiresIn": expires_in},
        )
    except StorageError as exc:
        logger.warning("Storage signed URL failed for %s/%s: %s", bucket, object_path, exc.message)
        raise
    return _absolute((data or {}).get("signedURL"))


async def create_signed_urls(
    bucket: str,
    paths: list[str],
    expires_in: int,
) -> list[dict[str, Any]]:
    """Sign many objects in one call.

    Each entry is ``{"path", "signedUrl", "error"}``; ``signedUrl`` is None for
    paths the service could not sign.
    """
    try:
        data = await _request(
            "POST",
            _object_url("object", "sign", bucket),
            json={"expiresIn": expires_in, "paths": paths},
        )
    except StorageError as exc:
        logger.warning("Storage batch signing failed for %s (%d paths): %s", bucket, len(paths), exc.message)
        raise
    return [
        {
            "path": item.get("path"),
            "signedUrl": _absolute(item.get("signedURL")),
            "error": item.get("error"),
        }
        for item in data or []
    ]


def get_public_url(bucket: str, object_path: str) -> str:
    """Public URL for an object in a public bucket. No network call."""
    return f"{settings.storage_api_url}{_object_url('object', 'public', bucket, object_path)}"
