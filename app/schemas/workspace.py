"""Workspace schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class WorkspaceCreate(BaseModel):
    """Schema for creating a workspace. Extra fields are stored in ``data``."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, max_length=255)


class WorkspaceUpdate(BaseModel):
    """Schema for editing a workspace (full replacement of name and members)."""

    name: str = Field(..., min_length=1, max_length=255)
    services: list[str]


class WorkspaceRead(BaseModel):
    id: str
    name: str
    order: int
    services: list[str]
    userId: int
