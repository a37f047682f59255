"""Workspace API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_auth
from app.models.user import User
from app.schemas.workspace import WorkspaceCreate, WorkspaceRead, WorkspaceUpdate
from app.services.workspace import (
    create_workspace,
    delete_workspace,
    list_workspaces,
    update_workspace,
)

router = APIRouter()


@router.get("/workspace", response_model=list[WorkspaceRead])
def api_list_workspaces(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
) -> list[dict]:
    return list_workspaces(db, current_user)


@router.post("/workspace", response_model=WorkspaceRead)
def api_create_workspace(
    body: WorkspaceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
) -> dict:
    """Create an empty workspace at the end of the user's list."""
    return create_workspace(db, current_user, body.model_dump())


@router.put("/workspace/{workspace_id}", response_model=WorkspaceRead)
def api_edit_workspace(
    workspace_id: str,
    body: WorkspaceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
) -> dict:
    """Replace the workspace's name and member services."""
    return update_workspace(db, current_user, workspace_id, body.name, body.services)


@router.delete("/workspace/{workspace_id}")
def api_delete_workspace(
    workspace_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_auth),
) -> dict:
    delete_workspace(db, current_user, workspace_id)
    return {"message": "Successfully deleted workspace"}
