"""Helpers for building storage object keys."""

import re
import uuid

from oreocat.models.session import SessionUser

PUBLIC_PREFIX = "uploads"

_unsafe_chars = re.compile(r"[^A-Za-z0-9.-]")


def sanitize_filename(filename: str) -> str:
    """Replace every character outside ``[A-Za-z0-9.-]`` with ``_``, one for one."""
    return _unsafe_chars.sub("_", filename or "")


def prefix_for(user: SessionUser | None) -> str:
    if user is None:
        return PUBLIC_PREFIX
    return f"users/{user.id}/{PUBLIC_PREFIX}"


def build_object_path(prefix: str, filename: str) -> str:
    """Return ``{prefix}/{uuid4}-{sanitized filename}``.

    Uniqueness rests on the random id alone; the upload itself refuses to
    overwrite, so a collision surfaces as a storage error.
    """
    return f"{prefix}/{uuid.uuid4()}-{sanitize_filename(filename)}"
