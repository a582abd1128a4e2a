"""Tests for the worker health endpoint."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from lextrust.temporal.worker import app


class TestHealthEndpoint:
    """Tests for GET /health."""

    @pytest.fixture(autouse=True)
    def reset_state(self):
        yield
        app.state.db = None

    def test_before_database_init(self):
        """Test that health reports an uninitialized database."""
        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == {"status": "not_initialized"}

    def test_reports_database_health(self):
        """Test that the database client's health check is included."""
        app.state.db = MagicMock(health_check=AsyncMock(return_value={"status": "healthy", "connected": True}))

        body = TestClient(app).get("/health").json()

        assert body["status"] == "ok"
        assert body["database"]["status"] == "healthy"
