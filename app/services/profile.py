"""Account profile (``/me``) read and settings update."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.models.user import User
from app.services.settings_merge import dump_blob, load_blob, merge_settings, render_profile


def get_profile(user: User) -> dict[str, Any]:
    return render_profile(user)


def update_profile(db: Session, user: User, data: dict[str, Any]) -> dict[str, Any]:
    """Merge ``data`` into the stored profile settings and return the new profile."""
    user.settings = dump_blob(merge_settings(load_blob(user.settings), data))
    db.commit()
    db.refresh(user)
    return render_profile(user)
