"""Account profile routes (``/me``)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_auth
from app.models.user import User
from app.services.profile import get_profile, update_profile

router = APIRouter()


@router.get("/me")
def me(current_user: User = Depends(require_auth)) -> dict:
    """Return the current user's profile merged with their stored settings."""
    return get_profile(current_user)


@router.put("/me")
def update_me(
    data: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
) -> dict:
    """Merge the request body into the user's profile settings."""
    return {"data": update_profile(db, current_user, data), "status": ["data-updated"]}
