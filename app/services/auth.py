"""Authentication service: user management and JWT tokens."""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings
from app.errors import Conflict, Unauthenticated
from app.models.user import User

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    """Base64 SHA-256 digest; the form Franz clients send as the password."""
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest()).decode("ascii")


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def create_user(
    db: Session,
    email: str,
    password: str,
    firstname: str = "",
    lastname: str = "",
) -> User:
    """Create a new user with hashed password.

    Raises Conflict when the email is already registered (unique constraint).
    """
    user = User(email=email, username=firstname, lastname=lastname)
    user.set_password(password)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("User create rejected for %s: email already in use", email)
        raise Conflict("E-Mail Address already in use") from exc
    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Validate credentials and return user, or None if invalid."""
    user = get_user_by_email(db, email)
    if user is None:
        return None
    if not user.verify_password(password):
        return None
    return user


def parse_basic_auth(header: str | None) -> tuple[str, str] | None:
    """Decode ``Basic base64(email:password)``. Returns None if malformed."""
    if not header or not header.startswith("Basic "):
        return None
    try:
        decoded = base64.b64decode(header[len("Basic ") :].strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    email, sep, password = decoded.partition(":")
    if not sep or not email:
        return None
    return email, password


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token signed with ``settings.secret_key``."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.access_token_expire_days)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def create_token_for_user(user: User, settings: Settings) -> str:
    """Access token whose subject is the user's id."""
    return create_access_token({"sub": str(user.id)}, settings)


def decode_access_token(token: str, settings: Settings) -> Optional[dict]:
    """Decode and validate a JWT token. Returns payload or None."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def get_user_from_token(db: Session, token: str, settings: Settings) -> Optional[User]:
    """Extract user from a JWT token. Returns None if token invalid or user not found."""
    payload = decode_access_token(token, settings)
    if payload is None:
        return None
    subject: Optional[str] = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        return None
    return db.get(User, int(subject))


def resolve(db: Session, token: str | None, settings: Settings) -> User:
    """Authentication gate: bearer token -> User, or Unauthenticated."""
    if not token:
        raise Unauthenticated()
    user = get_user_from_token(db, token, settings)
    if user is None:
        raise Unauthenticated()
    return user
