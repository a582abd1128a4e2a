"""Tests for the learning diagnoser."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from lextrust.services.learning.diagnoser import (
    ALLOWLISTED_RATIO_METRIC,
    CANONICALIZER_UPDATE_JOB,
    DEAD_LINK_RATE_METRIC,
    GUARDRAIL_TUNE_JOB,
    LearningDiagnoser,
    citation_rates,
)


class TestCitationRates:
    """Tests for citation_rates."""

    def test_no_citations(self):
        """Test that an empty window reports perfect health."""
        assert citation_rates([]) == (1.0, 0.0)

    def test_mixed_verdicts(self):
        """Test that null verdicts count as not allowlisted."""
        assert citation_rates([True, True, False, None]) == (0.5, 0.5)


class TestLearningDiagnoser:
    """Tests for LearningDiagnoser.diagnose."""

    @pytest.fixture
    def activity(self) -> MagicMock:
        activity = MagicMock()
        activity.recent_run_ids = AsyncMock(return_value=[uuid4(), uuid4()])
        activity.citation_verdicts = AsyncMock(return_value=[True] * 10)
        return activity

    @pytest.fixture
    def metrics(self) -> MagicMock:
        metrics = MagicMock()
        metrics.record = AsyncMock()
        return metrics

    @pytest.fixture
    def jobs(self) -> MagicMock:
        jobs = MagicMock()
        jobs.create_job = AsyncMock()
        return jobs

    @pytest.fixture
    def diagnoser(self, mock_session, activity, metrics, jobs) -> LearningDiagnoser:
        return LearningDiagnoser(mock_session, activity_repository=activity, metric_repository=metrics, job_repository=jobs)

    @pytest.mark.asyncio
    async def test_healthy_window(self, diagnoser, metrics, jobs):
        """Test that healthy metrics are recorded without jobs."""
        result = await diagnoser.diagnose(lookback_runs=50)

        assert result.allowlisted_ratio == 1.0
        assert result.jobs_emitted == []
        recorded = {call.args[0]: call.args[1:3] for call in metrics.record.await_args_list}
        assert recorded == {
            ALLOWLISTED_RATIO_METRIC: (1.0, "last_50_runs"),
            DEAD_LINK_RATE_METRIC: (0.0, "last_50_runs"),
        }
        jobs.create_job.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_runs_still_records_defaults(self, diagnoser, activity, metrics):
        """Test that an empty window writes 1.0 and 0.0."""
        activity.recent_run_ids.return_value = []
        activity.citation_verdicts.return_value = []

        result = await diagnoser.diagnose()

        assert (result.allowlisted_ratio, result.dead_link_rate, result.total_citations) == (1.0, 0.0, 0)
        assert metrics.record.await_count == 2

    @pytest.mark.asyncio
    async def test_regression_emits_ready_jobs(self, diagnoser, activity, jobs, mock_session, org_id):
        """Test that breaches create guardrail and canonicalizer jobs."""
        activity.citation_verdicts.return_value = [True] * 8 + [False] * 2

        result = await diagnoser.diagnose(org_id=org_id)

        assert result.jobs_emitted == [GUARDRAIL_TUNE_JOB, CANONICALIZER_UPDATE_JOB]
        first, second = jobs.create_job.await_args_list
        assert first.args[:2] == (GUARDRAIL_TUNE_JOB, "READY")
        assert first.args[2] == {"reason": "allowlisted_precision_regression", "value": 0.8}
        assert first.kwargs["org_id"] == org_id
        assert second.args[2]["reason"] == "dead_link_rate"
        mock_session.commit.assert_awaited_once()
