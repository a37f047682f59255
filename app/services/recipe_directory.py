"""Recipe directory: official upstream catalog merged with local custom recipes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from app.config import Settings
from app.errors import InvalidIdentifier, RecipeNotFound, ValidationFailed
from app.models.recipe import Recipe
from app.services.settings_merge import load_blob
from app.upstream.client import UpstreamClient

logger = logging.getLogger(__name__)

# Search needle the client sends to list only this server's custom recipes
CUSTOM_RECIPES_NEEDLE = "ferdi:custom"

BUNDLE_SUFFIX = ".tar.gz"


def validate_recipe_id(recipe_id: str) -> str:
    """Reject ids that could escape the recipes directory.

    Raises ValidationFailed for an empty id and InvalidIdentifier for ids
    containing '.' or '/'.
    """
    if not recipe_id or not recipe_id.strip():
        raise ValidationFailed(
            "Please provide a recipe ID",
            errors=[{"field": "recipe", "message": "required"}],
        )
    if "." in recipe_id or "/" in recipe_id:
        raise InvalidIdentifier('Invalid recipe name. Recipe IDs may not contain "." or "/"')
    return recipe_id


def bundle_path(recipes_dir: str | Path, recipe_id: str) -> Path:
    """Path of a custom recipe's archive: ``{recipes_dir}/{recipe_id}.tar.gz``."""
    return Path(recipes_dir) / f"{validate_recipe_id(recipe_id)}{BUNDLE_SUFFIX}"


def recipe_summary(recipe: Recipe) -> dict[str, Any]:
    """``{id, name, **data}`` for a local recipe."""
    return {"id": recipe.recipe_id, "name": recipe.name, **load_blob(recipe.data)}


@dataclass
class RecipeDownload:
    """Result of a download lookup: local bundle bytes or an upstream redirect."""

    content: bytes | None = None
    redirect_url: str | None = None


class RecipeDirectory:
    """List, search and download recipes.

    The upstream part is skipped entirely when federation is disabled
    (``settings.connect_with_franz``).
    """

    def __init__(self, db: Session, settings: Settings, upstream: UpstreamClient) -> None:
        self.db = db
        self.settings = settings
        self.upstream = upstream

    @property
    def federation_enabled(self) -> bool:
        return self.settings.connect_with_franz

    def _local_recipes(self) -> list[dict[str, Any]]:
        return [recipe_summary(r) for r in self.db.query(Recipe).order_by(Recipe.id).all()]

    def list(self) -> list[dict[str, Any]]:
        """Official catalog followed by all custom recipes.

        Upstream failures propagate: there is no useful partial listing.
        """
        official: list[dict[str, Any]] = []
        if self.federation_enabled:
            official = self.upstream.list_recipes()
        return [*official, *self._local_recipes()]

    def search(self, needle: str) -> list[dict[str, Any]]:
        """Local matches (case-sensitive substring on name) followed by upstream matches."""
        if needle == CUSTOM_RECIPES_NEEDLE:
            return self._local_recipes()

        remote: list[dict[str, Any]] = []
        if self.federation_enabled:
            remote = self.upstream.search_recipes(needle)

        # LIKE narrows the rows; the Python check enforces case sensitivity on every backend
        candidates = (
            self.db.query(Recipe)
            .filter(Recipe.name.contains(needle, autoescape=True))
            .order_by(Recipe.id)
            .all()
        )
        local = [recipe_summary(r) for r in candidates if needle in r.name]
        return [*local, *remote]

    def download(self, recipe_id: str) -> RecipeDownload:
        """Local bundle bytes, else an upstream redirect, else RecipeNotFound."""
        path = bundle_path(self.settings.recipes_dir, recipe_id)
        if path.is_file():
            return RecipeDownload(content=path.read_bytes())
        if self.federation_enabled:
            return RecipeDownload(redirect_url=self.upstream.recipe_download_url(recipe_id))
        logger.info("Recipe %s not found locally and federation is disabled", recipe_id)
        raise RecipeNotFound()
