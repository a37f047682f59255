"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.db.session import get_db  # re-export
from app.errors import Unauthenticated
from app.models.user import User
from app.services.auth import get_user_from_token
from app.upstream.client import UpstreamClient

__all__ = [
    "get_db",
    "get_settings",
    "get_current_user",
    "get_upstream_client",
    "require_auth",
]


def get_upstream_client(settings: Settings = Depends(get_settings)) -> UpstreamClient:
    """Upstream API client built from settings (overridden in tests)."""
    return UpstreamClient.from_settings(settings)


def get_current_user(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(None),
) -> User | None:
    """Return the user for an ``Authorization: Bearer <token>`` header, or None."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer ") :].strip()
    if not token:
        return None
    return get_user_from_token(db, token, settings)


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """Authentication gate for every protected route: always 401 on failure."""
    if user is None:
        raise Unauthenticated()
    return user
