"""Pydantic schemas for request/response validation."""

from app.schemas.auth import SignupRequest, TokenResponse
from app.schemas.service import ServiceCreate, ServiceReorder, ServiceSettings, ServiceUpdate
from app.schemas.workspace import WorkspaceCreate, WorkspaceRead, WorkspaceUpdate

__all__ = [
    # Auth
    "SignupRequest",
    "TokenResponse",
    # Service
    "ServiceCreate",
    "ServiceReorder",
    "ServiceSettings",
    "ServiceUpdate",
    # Workspace
    "WorkspaceCreate",
    "WorkspaceRead",
    "WorkspaceUpdate",
]
