"""Recipe directory routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_settings, get_upstream_client
from app.config import Settings
from app.services.recipe_directory import RecipeDirectory
from app.upstream.client import UpstreamClient

router = APIRouter()


def get_recipe_directory(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream_client),
) -> RecipeDirectory:
    return RecipeDirectory(db, settings, upstream)


@router.get("/recipes")
def api_list_recipes(directory: RecipeDirectory = Depends(get_recipe_directory)) -> list[dict]:
    """Official recipes followed by this server's custom recipes."""
    return directory.list()


@router.get("/recipes/search")
def api_search_recipes(
    needle: str = Query(..., min_length=1),
    directory: RecipeDirectory = Depends(get_recipe_directory),
) -> list[dict]:
    """Search by name. ``needle=ferdi:custom`` lists only custom recipes."""
    return directory.search(needle)


@router.get("/recipes/download/{recipe}")
def api_download_recipe(
    recipe: str,
    directory: RecipeDirectory = Depends(get_recipe_directory),
) -> Response:
    """Serve a custom recipe bundle, or redirect to the upstream download."""
    result = directory.download(recipe)
    if result.redirect_url is not None:
        return RedirectResponse(result.redirect_url, status_code=302)
    return Response(content=result.content, media_type="application/gzip")
