"""Tests for the learning signal collector."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from lextrust.schemas.learning import SignalSource
from lextrust.services.learning.collector import (
    CITATION_LIMIT,
    RUN_LIMIT,
    SignalCollector,
    citation_signal,
    hitl_signal,
    run_signal,
    telemetry_signal,
)


class TestSignalMapping:
    """Tests for activity row to signal mapping."""

    def test_run_signal(self, org_id):
        """Test that run status becomes the signal kind."""
        run = SimpleNamespace(
            id=uuid4(), org_id=org_id, status="completed", risk_level="HIGH",
            refusal_reason=None, jurisdiction_json={"country": "FR"},
        )
        signal = run_signal(run)
        assert signal.source == SignalSource.AGENT_RUN
        assert signal.kind == "completed"
        assert signal.run_id == run.id
        assert signal.payload["jurisdiction"] == {"country": "FR"}

    def test_citation_signal_kinds(self, org_id):
        """Test the allowlisted and violation kinds."""
        base = {"org_id": org_id, "run_id": uuid4(), "url": "https://www.legifrance.gouv.fr/x", "translation_flag": None}
        assert citation_signal(SimpleNamespace(domain_ok=True, **base)).kind == "allowlisted"
        assert citation_signal(SimpleNamespace(domain_ok=False, **base)).kind == "violation"
        assert citation_signal(SimpleNamespace(domain_ok=None, **base)).kind == "violation"

    def test_citation_without_run_is_dropped(self, org_id):
        """Test that orphan citations produce no signal."""
        row = SimpleNamespace(org_id=org_id, run_id=None, domain_ok=True, url="u", translation_flag=None)
        assert citation_signal(row) is None

    def test_telemetry_signal(self, org_id):
        """Test that telemetry signals carry no run id."""
        row = SimpleNamespace(org_id=org_id, run_id=uuid4(), tool_name="web_search", latency_ms=120,
                              success=False, error_code="timeout")
        signal = telemetry_signal(row)
        assert signal.run_id is None
        assert signal.kind == "failure"
        assert signal.payload == {"tool": "web_search", "latency_ms": 120, "error_code": "timeout"}

    def test_hitl_signal(self, org_id):
        """Test that the review timestamp is serialised."""
        row = SimpleNamespace(org_id=org_id, run_id=uuid4(), status="approved", reviewer_comment="ok",
                              updated_at=datetime(2024, 5, 1, tzinfo=timezone.utc))
        assert hitl_signal(row).payload["updated_at"] == "2024-05-01T00:00:00+00:00"


class TestSignalCollector:
    """Tests for SignalCollector.collect."""

    @pytest.fixture
    def activity(self, org_id) -> MagicMock:
        activity = MagicMock()
        run_id = uuid4()
        activity.runs_since = AsyncMock(return_value=[
            SimpleNamespace(id=run_id, org_id=org_id, status="completed", risk_level="LOW",
                            refusal_reason=None, jurisdiction_json=None),
        ])
        activity.citations_since = AsyncMock(return_value=[
            SimpleNamespace(org_id=org_id, run_id=run_id, domain_ok=True, url="u1", translation_flag=None),
            SimpleNamespace(org_id=org_id, run_id=None, domain_ok=True, url="u2", translation_flag=None),
        ])
        activity.telemetry_since = AsyncMock(return_value=[])
        activity.hitl_since = AsyncMock(return_value=[])
        return activity

    @pytest.fixture
    def signal_repository(self) -> MagicMock:
        repository = MagicMock()
        repository.insert_many = AsyncMock(side_effect=lambda signals: len(signals))
        return repository

    @pytest.mark.asyncio
    async def test_collect_window(self, mock_session, activity, signal_repository):
        """Test that the trailing window and source limits are applied."""
        collector = SignalCollector(mock_session, activity_repository=activity, signal_repository=signal_repository)
        before = datetime.now(timezone.utc)

        inserted = await collector.collect(window_minutes=10)

        assert inserted == 2
        since = activity.runs_since.await_args.args[0]
        assert 590 <= (before - since).total_seconds() <= 610
        assert activity.runs_since.await_args.kwargs["limit"] == RUN_LIMIT
        assert activity.citations_since.await_args.kwargs["limit"] == CITATION_LIMIT
        mock_session.commit.assert_awaited_once()
