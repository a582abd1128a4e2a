"""Tests for the database client lifecycle."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from lextrust.core.database import DatabaseClient, init_database


def _engine(scalar_result=1) -> MagicMock:
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.scalar = AsyncMock(return_value=scalar_result)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=conn)
    context.__aexit__ = AsyncMock(return_value=False)
    engine = MagicMock()
    engine.connect = MagicMock(return_value=context)
    engine.dispose = AsyncMock()
    return engine


class TestDatabaseClient:
    """Tests for DatabaseClient."""

    @pytest.mark.asyncio
    async def test_health_check_healthy(self):
        """Test that a SELECT 1 round trip reports healthy."""
        health = await DatabaseClient(_engine()).health_check()

        assert health["status"] == "healthy"
        assert health["latency_test"] == "passed"

    @pytest.mark.asyncio
    async def test_health_check_unhealthy(self):
        """Test that connection errors are reported instead of raised."""
        engine = _engine()
        engine.connect.side_effect = OSError("connection refused")

        health = await DatabaseClient(engine).health_check()

        assert health == {"status": "unhealthy", "connected": False, "error": "connection refused"}

    @pytest.mark.asyncio
    async def test_connect_propagates_errors(self):
        """Test that a failed connection at startup is raised."""
        engine = _engine()
        engine.connect.side_effect = OSError("connection refused")

        with pytest.raises(OSError):
            await DatabaseClient(engine).connect()

    @pytest.mark.asyncio
    async def test_init_database_connects(self):
        """Test that init_database returns a connected client."""
        engine = _engine()
        with patch("lextrust.core.database.get_engine", return_value=engine):
            client = await init_database()

        assert client.engine is engine
        engine.connect.assert_called_once()
