"""Tests for BaseRepository."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from lextrust.database.models import LearningSignal
from lextrust.repositories.base_repository import BaseRepository


class TestBaseRepository:
    """Tests for BaseRepository.create."""

    @pytest.mark.asyncio
    async def test_create_adds_and_flushes(self, mock_session):
        """Test that create adds the instance and flushes without committing."""
        repository = BaseRepository(mock_session, LearningSignal)

        signal = await repository.create(source="agent_run", payload={"risk": "low"})

        assert isinstance(signal, LearningSignal)
        assert signal.source == "agent_run"
        mock_session.add.assert_called_once_with(signal)
        mock_session.flush.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_reraises_database_errors(self):
        """Test that flush errors propagate to the calling service."""
        session = MagicMock()
        session.flush = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("duplicate")))
        repository = BaseRepository(session, LearningSignal)

        with pytest.raises(IntegrityError):
            await repository.create(source="agent_run", payload={})
