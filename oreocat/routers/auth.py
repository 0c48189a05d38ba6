from typing import Annotated

from fastapi import APIRouter, Depends

from oreocat.core.auth import get_optional_user
from oreocat.models.session import SessionUser

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/session")
async def get_session(
    user: Annotated[SessionUser | None, Depends(get_optional_user)],
) -> dict:
    """Who the presented session belongs to; ``{"user": null}`` when signed out."""
    return {"user": user.model_dump() if user else None}
