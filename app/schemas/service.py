"""Service schemas.

Known client fields are typed; anything else the client sends is kept as-is
(``extra="allow"``) and ends up in the settings blob.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel


class ServiceSettings(BaseModel):
    """Fields of the settings blob this server knows about."""

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    isEnabled: Optional[bool] = None
    isNotificationEnabled: Optional[bool] = None
    isBadgeEnabled: Optional[bool] = None
    isMuted: Optional[bool] = None
    isDarkModeEnabled: Optional[bool | str] = None
    spellcheckerLanguage: Optional[str] = None
    order: Optional[int] = None
    customRecipe: Optional[bool] = None
    workspaces: Optional[list[str]] = None
    customUrl: Optional[str] = None
    team: Optional[str] = None

    def to_blob(self) -> dict:
        """Fields the client actually sent, known and unknown."""
        return self.model_dump(exclude_unset=True)


class ServiceCreate(ServiceSettings):
    """Schema for creating a service."""

    name: str = Field(..., min_length=1, max_length=255)
    recipeId: str = Field(..., min_length=1, max_length=255)


class ServiceUpdate(ServiceSettings):
    """Schema for updating a service. All fields optional."""


class ServiceReorder(RootModel[dict[str, int]]):
    """``{service_id: position}``."""
