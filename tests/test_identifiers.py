"""Tests for opaque identifier generation."""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from app.errors import Conflict
from app.models.service import Service
from app.services.identifiers import (
    MAX_INSERT_ATTEMPTS,
    generate_unique_id,
    insert_with_unique_id,
    new_uuid,
    service_id_exists,
    workspace_id_exists,
)


def _sequence(*values: str):
    it = iter(values)
    return lambda: next(it)


class TestGenerateUniqueId:
    def test_new_uuid_is_uuid4(self):
        assert uuid.UUID(new_uuid()).version == 4

    def test_returns_first_free_candidate(self):
        taken = {"a", "b"}
        assert generate_unique_id(taken.__contains__, _sequence("a", "b", "c")) == "c"

    def test_probe_called_until_free(self):
        exists = MagicMock(side_effect=[True, True, True, False])
        result = generate_unique_id(exists, _sequence("1", "2", "3", "4"))
        assert result == "4"
        assert exists.call_count == 4

    def test_default_factory_yields_distinct_ids(self):
        ids = {generate_unique_id(lambda _: False) for _ in range(50)}
        assert len(ids) == 50


class TestInsertWithUniqueId:
    def test_regenerates_on_write_conflict(self):
        db = MagicMock()
        db.commit.side_effect = [IntegrityError("INSERT", {}, Exception("unique")), None]
        built: list[str] = []

        def build(new_id: str) -> dict:
            built.append(new_id)
            return {"id": new_id}

        row = insert_with_unique_id(db, build, lambda _: False, _sequence("x", "y"))
        assert row == {"id": "y"}
        assert built == ["x", "y"]
        db.rollback.assert_called_once()
        db.refresh.assert_called_once_with(row)

    def test_gives_up_after_max_attempts(self):
        db = MagicMock()
        db.commit.side_effect = IntegrityError("INSERT", {}, Exception("unique"))
        factory = _sequence(*(str(i) for i in range(MAX_INSERT_ATTEMPTS)))
        with pytest.raises(Conflict):
            insert_with_unique_id(db, lambda new_id: object(), lambda _: False, factory)
        assert db.commit.call_count == MAX_INSERT_ATTEMPTS

    def test_real_unique_constraint(self, db, user):
        """A duplicate service_id from a stale probe is retried, not surfaced."""
        db.add(Service(user_id=user.id, service_id="dup", recipe_id="slack", name="Slack"))
        db.commit()

        factory = _sequence("dup", "fresh")
        # A probe that never sees the existing row simulates a concurrent insert
        service = insert_with_unique_id(
            db,
            lambda new_id: Service(
                user_id=user.id, service_id=new_id, recipe_id="slack", name="Slack 2"
            ),
            lambda _: False,
            factory,
        )
        assert service.service_id == "fresh"
        assert db.query(Service).count() == 2


class TestProbes:
    def test_service_probe(self, db, user):
        db.add(Service(user_id=user.id, service_id="s-1", recipe_id="slack", name="Slack"))
        db.commit()
        exists = service_id_exists(db)
        assert exists("s-1") is True
        assert exists("s-2") is False

    def test_workspace_probe_on_empty_table(self, db):
        assert workspace_id_exists(db)(str(uuid.uuid4())) is False

    def test_generate_skips_existing_service_id(self, db, user):
        db.add(Service(user_id=user.id, service_id="s-1", recipe_id="slack", name="Slack"))
        db.commit()
        assert generate_unique_id(service_id_exists(db), _sequence("s-1", "s-2")) == "s-2"
