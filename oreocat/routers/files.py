from typing import Annotated

from fastapi import APIRouter, Depends

from oreocat.core.auth import get_request_owner
from oreocat.core.errors import UpstreamError
from oreocat.core.settings import settings
from oreocat.models.session import SessionUser
from oreocat.models.upload import FileList, StoredFile
from oreocat.services.storage import create_signed_urls, list_files
from oreocat.services.storage_keys import prefix_for

router = APIRouter(prefix="/api", tags=["files"])


@router.get("/files", response_model=FileList)
async def list_recent_files(
    owner: Annotated[SessionUser | None, Depends(get_request_owner)],
) -> FileList:
    bucket = settings.SUPABASE_STORAGE_BUCKET
    prefix = prefix_for(owner)

    items = await list_files(bucket=bucket, prefix=prefix, limit=settings.list_limit)

    # Folder placeholders come back without an object id.
    paths = [
        f"{prefix}/{item['name']}"
        for item in items
        if item.get("name") and item.get("id") is not None
    ][: settings.list_limit]
    if not paths:
        return FileList(files=[])

    signed = await create_signed_urls(
        bucket=bucket,
        paths=paths,
        expires_in=settings.SIGNED_URL_EXPIRY_SECONDS,
    )
    if not signed:
        raise UpstreamError("Failed to generate signed URLs.")

    return FileList(
        files=[
            StoredFile(path=entry["path"], signedUrl=entry["signedUrl"], bucket=bucket)
            for entry in signed
        ]
    )
