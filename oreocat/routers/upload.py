from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from oreocat.core.auth import get_request_owner
from oreocat.core.errors import UpstreamError, ValidationError
from oreocat.core.settings import settings
from oreocat.models.session import SessionUser
from oreocat.models.upload import UploadResult
from oreocat.services.storage import create_signed_url, get_public_url, upload_file
from oreocat.services.storage_keys import build_object_path, prefix_for

router = APIRouter(prefix="/api", tags=["upload"])

_CHUNK_SIZE = 1024 * 1024  # 1 MB read chunks


async def _iter_chunks(file: UploadFile) -> AsyncIterator[bytes]:
    """Stream the spooled upload without buffering it in Python memory."""
    await file.seek(0)
    while chunk := await file.read(_CHUNK_SIZE):
        yield chunk


@router.post("/upload", response_model=UploadResult, response_model_exclude_none=True)
async def upload(
    request: Request,
    owner: Annotated[SessionUser | None, Depends(get_request_owner)],
) -> UploadResult:
    # Read the form by hand: a missing or non-file field must be a 400, not
    # FastAPI's 422 for a declared File(...) parameter.
    form = await request.form()
    values = form.getlist("file")
    if len(values) > 1:
        raise ValidationError("Only one file may be uploaded per request.")
    file = values[0] if values else None
    if not isinstance(file, UploadFile):
        raise ValidationError("A file is required.")

    bucket = settings.SUPABASE_STORAGE_BUCKET
    object_path = build_object_path(prefix_for(owner), file.filename or "")

    path = await upload_file(
        bucket=bucket,
        object_path=object_path,
        content=_iter_chunks(file),
        content_type=file.content_type or "application/octet-stream",
        size=file.size,
    )

    if settings.STORAGE_PUBLIC_URLS:
        return UploadResult(path=path, publicUrl=get_public_url(bucket, path), bucket=bucket)

    # The object is already stored; a signing failure leaves it in place.
    signed_url = await create_signed_url(
        bucket=bucket,
        object_path=path,
        expires_in=settings.SIGNED_URL_EXPIRY_SECONDS,
    )
    if not signed_url:
        raise UpstreamError("Failed to generate signed URL.")

    return UploadResult(path=path, signedUrl=signed_url, bucket=bucket)
