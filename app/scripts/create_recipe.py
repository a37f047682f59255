"""Package a recipe directory and register it as a custom recipe.

Usage:
    python -m app.scripts.create_recipe --id my-service --name "My Service" \\
        --source ./my-service --author "Jane Doe" --svg https://example.org/icon.svg

The directory contents are archived to ``{RECIPES_DIR}/{id}.tar.gz`` and a row is
added to the recipes table, after which the recipe shows up in listings, searches
and ``/v1/recipes/download/{id}``.
"""

from __future__ import annotations

import argparse
import logging
import sys
import tarfile
from pathlib import Path

from sqlalchemy.exc import IntegrityError

from app.config import get_settings
from app.db.session import SessionLocal, init_db
from app.errors import AppError
from app.models.recipe import Recipe
from app.services.recipe_directory import bundle_path, validate_recipe_id
from app.services.settings_merge import dump_blob

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0.0"


def build_bundle(source: Path, target: Path) -> Path:
    """Write every file under ``source`` into a gzip tarball at ``target``.

    Members are stored relative to ``source`` so the archive unpacks flat.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(target, "w:gz") as tar:
        for path in sorted(source.rglob("*")):
            tar.add(path, arcname=str(path.relative_to(source)), recursive=False)
    return target


def recipe_data(author: str, svg: str, version: str = DEFAULT_VERSION) -> dict:
    return {
        "author": author,
        "featured": False,
        "version": version,
        "icons": {"svg": svg},
    }


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Register a custom Ferdi recipe")
    parser.add_argument("--id", required=True, dest="recipe_id", help="Recipe id (no '.' or '/')")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--source", required=True, help="Directory holding the recipe files")
    parser.add_argument("--author", default="", help="Recipe author")
    parser.add_argument("--svg", default="", help="URL of the recipe's SVG icon")
    parser.add_argument("--version", default=DEFAULT_VERSION, help="Recipe version")
    args = parser.parse_args(argv)

    try:
        recipe_id = validate_recipe_id(args.recipe_id)
    except AppError as exc:
        print(exc.message)
        sys.exit(1)

    source = Path(args.source)
    if not source.is_dir():
        print(f"Source directory '{source}' does not exist.")
        sys.exit(1)

    settings = get_settings()
    init_db()
    db = SessionLocal()
    try:
        if db.query(Recipe).filter(Recipe.recipe_id == recipe_id).first():
            print(f"Recipe '{recipe_id}' already exists.")
            sys.exit(1)

        target = build_bundle(source, bundle_path(settings.recipes_dir, recipe_id))
        recipe = Recipe(
            recipe_id=recipe_id,
            name=args.name,
            data=dump_blob(recipe_data(args.author, args.svg, args.version)),
        )
        db.add(recipe)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            target.unlink(missing_ok=True)
            print(f"Recipe '{recipe_id}' already exists.")
            sys.exit(1)
        logger.info("Registered recipe %s at %s", recipe_id, target)
        print(f"Recipe '{recipe_id}' created successfully ({target}).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
