"""User model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import bcrypt as _bcrypt
from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base

if TYPE_CHECKING:
    from app.models.service import Service
    from app.models.workspace import Workspace

# bcrypt rejects longer input
MAX_PASSWORD_BYTES = 72


class User(Base):
    """Account holder. ``username`` carries the first name, as the client expects."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    lastname: Mapped[str] = mapped_column(String(80), nullable=False, default="")
    # Freeform profile settings (JSON text)
    settings: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    services: Mapped[list[Service]] = relationship(
        "Service", back_populates="user", cascade="all, delete-orphan"
    )
    workspaces: Mapped[list[Workspace]] = relationship(
        "Workspace", back_populates="user", cascade="all, delete-orphan"
    )

    def set_password(self, password: str) -> None:
        """Hash and store password using bcrypt."""
        self.password_hash = _bcrypt.hashpw(password.encode("utf-8"), _bcrypt.gensalt()).decode(
            "utf-8"
        )

    def verify_password(self, password: str) -> bool:
        """Verify password against stored hash. Over-long passwords never match."""
        try:
            return _bcrypt.checkpw(password.encode("utf-8"), self.password_hash.encode("utf-8"))
        except ValueError:
            return False
