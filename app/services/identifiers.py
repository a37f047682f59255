"""Opaque identifier generation for services, workspaces and uploaded icons.

Candidates are probed against storage before use. The probe only lowers the odds
of a collision; the unique constraints on ``services.service_id`` and
``workspaces.workspace_id`` are what guarantee uniqueness, so inserts go through
``insert_with_unique_id`` which regenerates on a write-time conflict.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import Conflict
from app.models.service import Service
from app.models.workspace import Workspace

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_INSERT_ATTEMPTS = 5


def new_uuid() -> str:
    """Return a random UUID4 string."""
    return str(uuid.uuid4())


def generate_unique_id(
    exists: Callable[[str], bool],
    factory: Callable[[], str] = new_uuid,
) -> str:
    """Generate ids until ``exists`` reports one as unused.

    Unbounded: exhausting the UUID space is not treated as a reachable state.
    """
    candidate = factory()
    while exists(candidate):
        logger.debug("Identifier collision on %s, regenerating", candidate)
        candidate = factory()
    return candidate


def insert_with_unique_id(
    db: Session,
    build: Callable[[str], T],
    exists: Callable[[str], bool],
    factory: Callable[[], str] = new_uuid,
) -> T:
    """Probe for a free id, build the row with it and commit.

    If the commit hits a unique-constraint violation (a concurrent insert took the
    id between probe and write), the row is discarded and a new id is tried.
    Raises Conflict after MAX_INSERT_ATTEMPTS.
    """
    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        new_id = generate_unique_id(exists, factory)
        row = build(new_id)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Unique id %s taken at write time (attempt %d/%d)",
                new_id,
                attempt,
                MAX_INSERT_ATTEMPTS,
            )
            continue
        db.refresh(row)
        return row
    raise Conflict("Could not allocate a unique identifier")


def service_id_exists(db: Session) -> Callable[[str], bool]:
    """Existence probe for ``services.service_id``."""

    def _exists(candidate: str) -> bool:
        return db.query(Service.id).filter(Service.service_id == candidate).first() is not None

    return _exists


def workspace_id_exists(db: Session) -> Callable[[str], bool]:
    """Existence probe for ``workspaces.workspace_id``."""

    def _exists(candidate: str) -> bool:
        return (
            db.query(Workspace.id).filter(Workspace.workspace_id == candidate).first() is not None
        )

    return _exists
