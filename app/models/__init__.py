"""SQLAlchemy models."""

from app.models.recipe import Recipe
from app.models.service import Service
from app.models.user import User
from app.models.workspace import Workspace

__all__ = [
    "Recipe",
    "Service",
    "User",
    "Workspace",
]
