"""Tests for the create_user and create_recipe CLI scripts."""

from __future__ import annotations

import json
import tarfile
from unittest.mock import patch

import pytest

from app.models.recipe import Recipe
from app.models.user import User
from app.services.auth import hash_password
from tests.test_constants import TEST_EMAIL, TEST_PASSWORD


@pytest.fixture
def scripts_db(db):
    """Route the scripts' SessionLocal to the test database."""
    with (
        patch("app.scripts.create_user.SessionLocal", return_value=db),
        patch("app.scripts.create_user.init_db"),
        patch("app.scripts.create_recipe.SessionLocal", return_value=db),
        patch("app.scripts.create_recipe.init_db"),
    ):
        yield db


class TestCreateUserScript:
    def test_creates_user(self, scripts_db, capsys) -> None:
        from app.scripts.create_user import main

        main(["--email", TEST_EMAIL, "--password", TEST_PASSWORD, "--firstname", "Jane"])
        out, _ = capsys.readouterr()
        assert "created successfully" in out
        user = scripts_db.query(User).filter(User.email == TEST_EMAIL).one()
        assert user.username == "Jane"
        # Stored the same way a client-side digest would arrive on login
        assert user.verify_password(hash_password(TEST_PASSWORD))

    def test_exits_1_when_duplicate(self, scripts_db, user, capsys) -> None:
        from app.scripts.create_user import main

        with pytest.raises(SystemExit) as exc_info:
            main(["--email", TEST_EMAIL, "--password", TEST_PASSWORD])
        assert exc_info.value.code == 1
        assert "already exists" in capsys.readouterr().out


class TestCreateRecipeScript:
    def _source(self, tmp_path):
        source = tmp_path / "src"
        (source / "nested").mkdir(parents=True)
        (source / "package.json").write_text('{"id": "intranet"}')
        (source / "webview.js").write_text("module.exports = () => {};")
        (source / "nested" / "icon.svg").write_text("<svg/>")
        return source

    def test_creates_bundle_and_row(self, scripts_db, settings, tmp_path, capsys) -> None:
        from app.scripts.create_recipe import main

        source = self._source(tmp_path)
        with patch("app.scripts.create_recipe.get_settings", return_value=settings):
            main(
                [
                    "--id", "intranet",
                    "--name", "Intranet",
                    "--source", str(source),
                    "--author", "Ops Team",
                    "--svg", "https://cdn.example.net/intranet.svg",
                ]
            )
        assert "created successfully" in capsys.readouterr().out

        bundle = tmp_path / "recipes" / "intranet.tar.gz"
        with tarfile.open(bundle, "r:gz") as tar:
            names = set(tar.getnames())
        assert {"package.json", "webview.js", "nested/icon.svg"} <= names

        recipe = scripts_db.query(Recipe).one()
        assert recipe.recipe_id == "intranet"
        assert json.loads(recipe.data) == {
            "author": "Ops Team",
            "featured": False,
            "version": "1.0.0",
            "icons": {"svg": "https://cdn.example.net/intranet.svg"},
        }

    def test_rejects_invalid_id(self, scripts_db, tmp_path, capsys) -> None:
        from app.scripts.create_recipe import main

        with pytest.raises(SystemExit) as exc_info:
            main(["--id", "../x", "--name", "X", "--source", str(self._source(tmp_path))])
        assert exc_info.value.code == 1
        assert "may not contain" in capsys.readouterr().out
        assert scripts_db.query(Recipe).count() == 0

    def test_rejects_missing_source(self, scripts_db, tmp_path) -> None:
        from app.scripts.create_recipe import main

        with pytest.raises(SystemExit):
            main(["--id", "x", "--name", "X", "--source", str(tmp_path / "nope")])

    def test_exits_1_when_duplicate(self, scripts_db, settings, tmp_path, capsys) -> None:
        from app.scripts.create_recipe import main

        scripts_db.add(Recipe(recipe_id="intranet", name="Intranet", data="{}"))
        scripts_db.commit()
        with patch("app.scripts.create_recipe.get_settings", return_value=settings):
            with pytest.raises(SystemExit) as exc_info:
                main(["--id", "intranet", "--name", "X", "--source", str(self._source(tmp_path))])
        assert exc_info.value.code == 1
        assert "already exists" in capsys.readouterr().out
