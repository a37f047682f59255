"""Authentication API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_settings
from app.config import Settings
from app.errors import InvalidCredentials, RegistrationDisabled, Unauthenticated
from app.schemas.auth import SignupRequest, TokenResponse
from app.services.auth import (
    authenticate_user,
    create_token_for_user,
    create_user,
    parse_basic_auth,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=TokenResponse)
def signup(
    body: SignupRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    """Register a new account and return an access token."""
    if not settings.is_registration_enabled:
        raise RegistrationDisabled()

    user = create_user(
        db,
        body.email,
        body.password,
        firstname=body.firstname,
        lastname=body.lastname,
    )
    logger.info("Registered user %s", user.id)
    return TokenResponse(
        message="Successfully created account",
        token=create_token_for_user(user, settings),
    )


@router.post("/login", response_model=TokenResponse)
def login(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(None),
) -> TokenResponse:
    """Authenticate with ``Authorization: Basic base64(email:password)``."""
    if not authorization:
        raise Unauthenticated("Please provide authorization")

    credentials = parse_basic_auth(authorization)
    if credentials is None:
        raise InvalidCredentials()

    email, password = credentials
    user = authenticate_user(db, email, password)
    if user is None:
        raise InvalidCredentials()

    return TokenResponse(
        message="Successfully logged in",
        token=create_token_for_user(user, settings),
    )
