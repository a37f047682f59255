"""
Health endpoint tests.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient


def test_health_returns_ok_when_db_connected(client: TestClient) -> None:
    """Health endpoint returns 200 with database connected."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert "version" in data


def test_health_returns_503_when_db_unreachable(client: TestClient) -> None:
    """Health endpoint returns 503 when database is unreachable."""
    from app.db import engine

    with (
        patch("app.main.check_db_connection"),  # no-op: lifespan succeeds
        patch.object(engine, "connect", side_effect=Exception("Connection refused")),
    ):
        response = client.get("/health")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["database"] == "disconnected"
    assert "version" in data


def test_lifespan_fails_when_db_unreachable() -> None:
    """Startup aborts when the database cannot be reached."""
    from app.main import app

    with patch("app.main.check_db_connection", side_effect=Exception("Connection refused")):
        with pytest.raises(Exception, match="Connection refused"):
            with TestClient(app):
                pass


def test_lifespan_creates_tables() -> None:
    """Startup runs init_db after the connectivity check."""
    from app.main import app

    init = MagicMock()
    with patch("app.main.check_db_connection"), patch("app.main.init_db", init):
        with TestClient(app) as c:
            assert c.get("/health").status_code in (200, 503)
    init.assert_called_once()
