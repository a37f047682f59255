"""Workspace CRUD service."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.errors import WorkspaceNotFound
from app.models.user import User
from app.models.workspace import Workspace
from app.services.identifiers import insert_with_unique_id, workspace_id_exists
from app.services.settings_merge import dump_blob, render_workspace

logger = logging.getLogger(__name__)


def _owned_workspace(db: Session, user: User, workspace_id: str) -> Workspace:
    workspace = (
        db.query(Workspace)
        .filter(Workspace.workspace_id == workspace_id, Workspace.user_id == user.id)
        .first()
    )
    if workspace is None:
        raise WorkspaceNotFound()
    return workspace


def next_order(db: Session, user: User) -> int:
    """Position for a new workspace: one past the user's highest, 0 for the first.

    Unlike a row count, this never repeats a position after a deletion.
    """
    highest = db.query(func.max(Workspace.order)).filter(Workspace.user_id == user.id).scalar()
    return 0 if highest is None else highest + 1


def list_workspaces(db: Session, user: User) -> list[dict[str, Any]]:
    workspaces = (
        db.query(Workspace)
        .filter(Workspace.user_id == user.id)
        .order_by(Workspace.order, Workspace.id)
        .all()
    )
    return [render_workspace(w) for w in workspaces]


def create_workspace(db: Session, user: User, data: dict[str, Any]) -> dict[str, Any]:
    """Create an empty workspace; the request body is kept in ``data``."""
    order = next_order(db, user)
    workspace = insert_with_unique_id(
        db,
        lambda new_id: Workspace(
            user_id=user.id,
            workspace_id=new_id,
            name=data["name"],
            order=order,
            services=dump_blob([]),
            data=dump_blob(data),
        ),
        workspace_id_exists(db),
    )
    logger.info("Created workspace %s for user %s", workspace.workspace_id, user.id)
    return render_workspace(workspace)


def update_workspace(
    db: Session,
    user: User,
    workspace_id: str,
    name: str,
    services: list[str],
) -> dict[str, Any]:
    """Replace name and member list."""
    workspace = _owned_workspace(db, user, workspace_id)
    workspace.name = name
    workspace.services = dump_blob(list(services))
    db.commit()
    db.refresh(workspace)
    return render_workspace(workspace)


def delete_workspace(db: Session, user: User, workspace_id: str) -> None:
    workspace = _owned_workspace(db, user, workspace_id)
    db.delete(workspace)
    db.commit()
