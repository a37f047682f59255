"""Authentication schemas."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.user import MAX_PASSWORD_BYTES


class SignupRequest(BaseModel):
    """Schema for account registration. ``password`` is the client-side digest."""

    firstname: str = Field(..., min_length=1, max_length=80)
    lastname: str = Field(..., min_length=1, max_length=80)
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_hash(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class TokenResponse(BaseModel):
    """Schema for signup/login responses."""

    message: str
    token: str
