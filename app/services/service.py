"""Service CRUD: a user's configured recipe instances.

Every mutation reads the stored settings blob, merges, and writes the whole blob
back. There is no field-level update and no version check, so concurrent edits of
the same service are last-write-wins.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings
from app.errors import IconNotFound, InvalidIdentifier, ServiceNotFound, ValidationFailed
from app.models.service import Service
from app.models.user import User
from app.services.identifiers import (
    generate_unique_id,
    insert_with_unique_id,
    service_id_exists,
)
from app.services.settings_merge import dump_blob, load_blob, merge_settings, render_service

logger = logging.getLogger(__name__)

ALLOWED_ICON_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "svg", "webp", "ico", "bmp"})


def _owned_service(db: Session, user: User, service_id: str) -> Service:
    service = (
        db.query(Service)
        .filter(Service.service_id == service_id, Service.user_id == user.id)
        .first()
    )
    if service is None:
        raise ServiceNotFound()
    return service


def list_services(db: Session, user: User, base_url: str) -> list[dict[str, Any]]:
    """All of the user's services, rendered for the client."""
    services = db.query(Service).filter(Service.user_id == user.id).order_by(Service.id).all()
    return [render_service(s, base_url) for s in services]


def create_service(db: Session, user: User, data: dict[str, Any], base_url: str) -> dict[str, Any]:
    """Create a service; the request body becomes the initial settings blob."""
    service = insert_with_unique_id(
        db,
        lambda new_id: Service(
            user_id=user.id,
            service_id=new_id,
            name=data["name"],
            recipe_id=data["recipeId"],
            settings=dump_blob(data),
        ),
        service_id_exists(db),
    )
    logger.info(
        "Created service %s (recipe %s) for user %s",
        service.service_id,
        service.recipe_id,
        user.id,
    )
    return render_service(service, base_url)


def update_service(
    db: Session,
    user: User,
    service_id: str,
    data: dict[str, Any],
    base_url: str,
) -> dict[str, Any]:
    """Merge ``data`` over the stored settings."""
    service = _owned_service(db, user, service_id)
    settings = merge_settings(load_blob(service.settings), data)
    if data.get("name"):
        service.name = data["name"]
    service.settings = dump_blob(settings)
    db.commit()
    db.refresh(service)
    return render_service(service, base_url)


def reorder_services(
    db: Session,
    user: User,
    positions: dict[str, int],
    base_url: str,
) -> list[dict[str, Any]]:
    """Set ``order`` for each ``{service_id: position}``; unknown ids are skipped."""
    for service_id, position in positions.items():
        service = (
            db.query(Service)
            .filter(Service.service_id == service_id, Service.user_id == user.id)
            .first()
        )
        if service is None:
            logger.debug("Reorder skipped unknown service %s", service_id)
            continue
        service.settings = dump_blob(merge_settings(load_blob(service.settings), {"order": position}))
    db.commit()
    return list_services(db, user, base_url)


def delete_service(db: Session, user: User, service_id: str) -> None:
    service = _owned_service(db, user, service_id)
    db.delete(service)
    db.commit()


# ── Icons ────────────────────────────────────────────────────────────


def _icon_extension(filename: str | None, content_type: str | None) -> str:
    """Validated lowercase extension of an uploaded icon."""
    if content_type and not content_type.startswith("image/"):
        raise ValidationFailed(
            "Icon must be an image",
            errors=[{"field": "icon", "message": "must be an image"}],
        )
    ext = Path(filename or "").suffix.lstrip(".").lower()
    if ext not in ALLOWED_ICON_EXTENSIONS:
        raise ValidationFailed(
            "Unsupported icon file type",
            errors=[{"field": "icon", "message": f"unsupported extension '{ext}'"}],
        )
    return ext


def _new_icon_name() -> str:
    return uuid.uuid4().hex + uuid.uuid4().hex


def _is_safe_icon_id(icon_id: str) -> bool:
    return bool(icon_id) and "/" not in icon_id and "\\" not in icon_id and not icon_id.startswith(".")


def _remove_icon(uploads: Path, icon_id: Any) -> None:
    """Delete a replaced icon file; a missing file is not an error."""
    if not isinstance(icon_id, str) or not _is_safe_icon_id(icon_id):
        logger.warning("Not removing icon with unsafe id %r", icon_id)
        return
    (uploads / icon_id).unlink(missing_ok=True)


def set_service_icon(
    db: Session,
    user: User,
    service_id: str,
    content: bytes,
    filename: str | None,
    content_type: str | None,
    settings: Settings,
) -> dict[str, Any]:
    """Store an uploaded icon and point the service at it.

    Bumps ``customIconVersion`` so clients drop their cached copy.
    """
    service = _owned_service(db, user, service_id)
    if len(content) > settings.max_icon_size:
        raise ValidationFailed(
            "Icon is too large",
            errors=[{"field": "icon", "message": f"must be at most {settings.max_icon_size} bytes"}],
        )
    ext = _icon_extension(filename, content_type)

    uploads = Path(settings.uploads_dir)
    uploads.mkdir(parents=True, exist_ok=True)
    stem = generate_unique_id(lambda c: (uploads / f"{c}.{ext}").exists(), _new_icon_name)
    icon_id = f"{stem}.{ext}"
    new_file = uploads / icon_id
    new_file.write_bytes(content)

    stored = load_blob(service.settings)
    previous = stored.get("iconId")
    new_settings = merge_settings(
        stored,
        {
            "iconId": icon_id,
            "customIconVersion": (stored.get("customIconVersion") or 0) + 1,
        },
    )
    service.settings = dump_blob(new_settings)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        new_file.unlink(missing_ok=True)
        raise
    db.refresh(service)
    logger.info("Stored icon %s for service %s", icon_id, service.service_id)

    if previous and previous != icon_id:
        _remove_icon(uploads, previous)
    return render_service(service, settings.app_url)


def icon_path(settings: Settings, icon_id: str) -> Path:
    """Filesystem path of an uploaded icon. Raises IconNotFound if absent."""
    if not _is_safe_icon_id(icon_id):
        raise InvalidIdentifier("Invalid icon id")
    path = Path(settings.uploads_dir) / icon_id
    if not path.is_file():
        raise IconNotFound()
    return path
