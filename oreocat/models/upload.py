from pydantic import BaseModel


class StoredFile(BaseModel):
    """One listing entry. Never persisted; built per response."""

    path: str
    signedUrl: str | None = None
    bucket: str


class UploadResult(BaseModel):
    """Upload response. Carries a signed URL, or a public URL for public buckets."""

    path: str
    signedUrl: str | None = None
    publicUrl: str | None = None
    bucket: str


class FileList(BaseModel):
    files: list[StoredFile]
