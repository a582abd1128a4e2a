"""Tests for drift reports and queue snapshots."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from lextrust.services.learning.reports import LearningReportService, build_drift_payload, build_queue_payload


class TestPayloads:
    """Tests for report payload builders."""

    def test_drift_payload(self):
        """Test run counts and the allowlisted ratio."""
        runs = [
            SimpleNamespace(risk_level="high", hitl_required=True),
            SimpleNamespace(risk_level="LOW", hitl_required=False),
            SimpleNamespace(risk_level=None, hitl_required=True),
        ]
        assert build_drift_payload(runs, [True, False, True, True]) == {
            "totalRuns": 3,
            "highRiskRuns": 1,
            "hitlEscalations": 2,
            "allowlistedRatio": 0.75,
        }

    def test_drift_without_citations(self):
        """Test that no citations leaves the ratio empty."""
        assert build_drift_payload([], [])["allowlistedRatio"] is None

    def test_queue_payload(self):
        """Test pending counts per type and the oldest timestamp."""
        older = datetime(2024, 4, 30, 8, 0, tzinfo=timezone.utc)
        newer = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
        captured = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

        payload = build_queue_payload(
            [("query_rewrite_ticket", newer), (None, older), ("query_rewrite_ticket", None)], captured
        )

        assert payload == {
            "pending": 3,
            "byType": {"query_rewrite_ticket": 2, "unknown": 1},
            "oldestCreatedAt": "2024-04-30T08:00:00+00:00",
            "capturedAt": "2024-05-01T09:00:00+00:00",
        }


class TestLearningReportService:
    """Tests for LearningReportService.generate."""

    @pytest.fixture
    def activity(self) -> MagicMock:
        activity = MagicMock()
        activity.runs_for_org_since = AsyncMock(
            return_value=[SimpleNamespace(id=uuid4(), risk_level="HIGH", hitl_required=False)]
        )
        activity.citation_verdicts = AsyncMock(return_value=[True])
        return activity

    @pytest.fixture
    def jobs(self) -> MagicMock:
        jobs = MagicMock()
        jobs.pending_snapshot = AsyncMock(return_value=[("indexing_ticket", None)])
        return jobs

    @pytest.fixture
    def reports(self) -> MagicMock:
        reports = MagicMock()
        reports.upsert = AsyncMock()
        return reports

    @pytest.fixture
    def service(self, mock_session, activity, jobs, reports) -> LearningReportService:
        return LearningReportService(mock_session, activity_repository=activity, job_repository=jobs, report_repository=reports)

    @pytest.mark.asyncio
    async def test_both_reports(self, service, reports, mock_session, org_id):
        """Test that drift and queue reports are written for each org."""
        results = await service.generate([org_id])

        assert results[0].drift is True and results[0].queue is True
        kinds = [call.args[1] for call in reports.upsert.await_args_list]
        assert kinds == ["drift", "queue"]
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_queue_only(self, service, reports, org_id):
        """Test that drift can be skipped."""
        results = await service.generate([org_id], drift=False)

        assert results[0].drift is None
        assert [call.args[1] for call in reports.upsert.await_args_list] == ["queue"]

    @pytest.mark.asyncio
    async def test_failure_is_per_org(self, service, reports, org_id):
        """Test that one organization's failure does not stop the others."""
        other = uuid4()

        async def upsert(report_org, kind, report_date, payload):
            if report_org == org_id and kind == "drift":
                raise OperationalError("INSERT", {}, Exception("down"))

        reports.upsert.side_effect = upsert

        results = await service.generate([org_id, other])

        assert results[0].drift is False
        assert results[0].queue is True
        assert "down" in results[0].error
        assert results[1].drift is True
