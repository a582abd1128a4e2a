"""Tests for the evaluation gate."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from lextrust.services.learning.diagnoser import ALLOWLISTED_RATIO_METRIC, DEAD_LINK_RATE_METRIC
from lextrust.services.learning.evaluation_gate import EvaluationGate, breached_reasons


class FakePolicyRepository:
    """Holds a single approved version until it is rolled back."""

    def __init__(self, version):
        self.version = version
        self.rolled_back = []

    async def latest_approved(self, org_id=None):
        if self.version is None or self.version.status != "approved":
            return None
        return self.version

    async def roll_back(self, version_id, notes):
        self.version.status = "rolled_back"
        self.version.notes = notes
        self.rolled_back.append(version_id)


class FakeJobRepository:
    """Jobs attached to policy versions."""

    def __init__(self, jobs):
        self.jobs = jobs

    async def roll_back_for_version(self, version_id):
        moved = 0
        for job in self.jobs:
            if job.policy_version_id == version_id and job.status != "ROLLED_BACK":
                job.status = "ROLLED_BACK"
                moved += 1
        return moved


class TestBreachedReasons:
    """Tests for breached_reasons."""

    @pytest.mark.parametrize(
        "ratio,rate,expected",
        [
            (0.99, 0.0, []),
            (0.95, 0.01, []),
            (0.80, 0.0, ["allowlisted_precision_regression"]),
            (0.99, 0.05, ["dead_link_rate"]),
            (None, None, []),
        ],
    )
    def test_thresholds(self, ratio, rate, expected):
        """Test the precision and dead-link thresholds."""
        assert breached_reasons(ratio, rate) == expected


class TestEvaluationGate:
    """Tests for EvaluationGate.evaluate."""

    @pytest.fixture
    def version(self, org_id) -> SimpleNamespace:
        return SimpleNamespace(id=uuid4(), org_id=org_id, version=3, status="approved", notes=None)

    @pytest.fixture
    def attached_jobs(self, version):
        return [SimpleNamespace(policy_version_id=version.id, status="NEEDS_APPROVAL") for _ in range(2)]

    @pytest.fixture
    def metrics(self) -> MagicMock:
        metrics = MagicMock()
        metrics.latest_values = AsyncMock(
            return_value={ALLOWLISTED_RATIO_METRIC: 0.80, DEAD_LINK_RATE_METRIC: 0.0}
        )
        return metrics

    @pytest.fixture
    def notifier(self) -> MagicMock:
        notifier = MagicMock()
        notifier.notify = AsyncMock()
        return notifier

    @pytest.fixture
    def gate(self, mock_session, metrics, version, attached_jobs, notifier) -> EvaluationGate:
        return EvaluationGate(
            mock_session,
            metric_repository=metrics,
            policy_repository=FakePolicyRepository(version),
            job_repository=FakeJobRepository(attached_jobs),
            notifier=notifier,
        )

    @pytest.mark.asyncio
    async def test_regression_rolls_back_approved_version(self, gate, version, attached_jobs, notifier, org_id):
        """Test that a precision drop rolls back the approved version and its jobs."""
        result = await gate.evaluate(org_id)

        assert result.breached is True
        assert result.reasons == ["allowlisted_precision_regression"]
        assert result.rolled_back_version == 3
        assert result.rolled_back_version_id == version.id
        assert result.jobs_rolled_back == 2
        assert version.status == "rolled_back"
        assert "allowlisted_precision_regression" in version.notes
        assert all(job.status == "ROLLED_BACK" for job in attached_jobs)
        assert notifier.notify.await_args.args[0] == "learning.policy_rolled_back"

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, gate, notifier, org_id):
        """Test that a repeated gate run finds nothing left to roll back."""
        await gate.evaluate(org_id)
        second = await gate.evaluate(org_id)

        assert second.breached is True
        assert second.rolled_back_version_id is None
        assert second.jobs_rolled_back == 0
        assert notifier.notify.await_count == 1

    @pytest.mark.asyncio
    async def test_healthy_metrics(self, gate, metrics, version, org_id):
        """Test that healthy metrics leave the approved version alone."""
        metrics.latest_values.return_value = {ALLOWLISTED_RATIO_METRIC: 0.99, DEAD_LINK_RATE_METRIC: 0.0}

        result = await gate.evaluate(org_id)

        assert result.breached is False
        assert version.status == "approved"

    @pytest.mark.asyncio
    async def test_missing_metrics_never_breach(self, gate, metrics, version):
        """Test that an empty metric table is not a regression."""
        metrics.latest_values.return_value = {}

        result = await gate.evaluate()

        assert result.breached is False
        assert version.status == "approved"
