from oreocat.models.session import SessionUser
from oreocat.models.upload import FileList, StoredFile, UploadResult

__all__ = [
    "SessionUser",
    "StoredFile",
    "UploadResult",
    "FileList",
]
