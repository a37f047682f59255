"""HTML routes for importing a Franz account.

The import is used by a person in a browser, so outcomes are rendered as prose on
a message page rather than as API error objects.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_settings, get_upstream_client
from app.config import Settings
from app.errors import AppError, RegistrationDisabled
from app.services.account_import import AccountImporter
from app.upstream.client import UpstreamClient

logger = logging.getLogger(__name__)

router = APIRouter()

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))

ERROR_HEADING = "Error while importing"
SUCCESS_HEADING = "Success"


def _message(request: Request, heading: str, text: str, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "message.html",
        {"request": request, "heading": heading, "text": text},
        status_code=status_code,
    )


@router.get("/import", response_class=HTMLResponse)
def import_page(request: Request):
    """Render the import form."""
    return templates.TemplateResponse(request, "import.html", {"request": request})


@router.post("/import", response_class=HTMLResponse)
def import_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream_client),
):
    """Run the account import and render its outcome."""
    if not settings.is_registration_enabled:
        return _message(
            request, ERROR_HEADING, RegistrationDisabled.default_message, status_code=401
        )

    importer = AccountImporter(db, settings, upstream)
    try:
        result = importer.run(email.strip() or None, password or None)
    except AppError as exc:
        logger.warning("Account import failed (%s): %s", exc.code, exc.message.splitlines()[0])
        return _message(request, ERROR_HEADING, exc.message, status_code=exc.status_code)

    return _message(request, SUCCESS_HEADING, result.message)
