"""Service API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from app.api.deps import get_db, get_settings, require_auth
from app.config import Settings
from app.errors import ValidationFailed
from app.models.user import User
from app.schemas.service import ServiceCreate, ServiceReorder, ServiceUpdate
from app.services.service import (
    create_service,
    delete_service,
    icon_path,
    list_services,
    reorder_services,
    set_service_icon,
    update_service,
)

router = APIRouter()


def validation_failed(exc: ValidationError) -> ValidationFailed:
    """Convert a pydantic error into the API's per-field validation error."""
    return ValidationFailed(
        errors=[
            {"field": ".".join(str(p) for p in err["loc"]) or "body", "message": err["msg"]}
            for err in exc.errors()
        ]
    )


@router.get("/me/services")
def api_list_services(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(require_auth),
) -> list[dict]:
    """List the user's services with all fields the client expects."""
    return list_services(db, current_user, settings.app_url)


@router.post("/service")
def api_create_service(
    body: ServiceCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(require_auth),
) -> dict:
    """Create a service for the current user."""
    data = create_service(db, current_user, body.to_blob(), settings.app_url)
    return {"data": data, "status": ["created"]}


@router.put("/service/reorder")
def api_reorder_services(
    body: ServiceReorder,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(require_auth),
) -> list[dict]:
    """Apply ``{service_id: position}`` and return the updated list."""
    return reorder_services(db, current_user, body.root, settings.app_url)


@router.put("/service/{service_id}")
async def api_edit_service(
    service_id: str,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(require_auth),
) -> dict:
    """Update service settings (JSON body) or upload a custom icon (multipart ``icon``)."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        icon = form.get("icon")
        if not isinstance(icon, UploadFile):
            raise ValidationFailed(
                "Please provide an icon",
                errors=[{"field": "icon", "message": "required"}],
            )
        content = await icon.read()
        data = await run_in_threadpool(
            set_service_icon,
            db,
            current_user,
            service_id,
            content,
            icon.filename,
            icon.content_type,
            settings,
        )
        return {"data": data, "status": ["updated"]}

    try:
        payload = await request.json()
    except ValueError:
        # Malformed JSON or a body that is not UTF-8
        raise ValidationFailed(
            "Request body must be JSON",
            errors=[{"field": "body", "message": "invalid JSON"}],
        ) from None
    try:
        body = ServiceUpdate.model_validate(payload)
    except ValidationError as exc:
        raise validation_failed(exc) from None

    data = await run_in_threadpool(
        update_service, db, current_user, service_id, body.to_blob(), settings.app_url
    )
    return {"data": data, "status": ["updated"]}


@router.delete("/service/{service_id}")
def api_delete_service(
    service_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
) -> dict:
    delete_service(db, current_user, service_id)
    return {"message": "Successfully deleted service", "status": 200}


@router.get("/icon/{icon_id}")
def api_get_icon(icon_id: str, settings: Settings = Depends(get_settings)) -> FileResponse:
    """Serve an uploaded service icon."""
    return FileResponse(icon_path(settings, icon_id))
