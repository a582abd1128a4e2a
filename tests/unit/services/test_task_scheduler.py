"""Tests for the task scheduler and ingestion run bookkeeping."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from lextrust.schemas.ingestion import IngestionSummary
from lextrust.services.scheduler import INGESTION_TASK, TaskScheduler


class TestTaskScheduler:
    """Tests for TaskScheduler."""

    @pytest.fixture
    def task_repository(self) -> MagicMock:
        repository = MagicMock()
        repository.enqueue = AsyncMock(return_value=SimpleNamespace(id=uuid4()))
        return repository

    @pytest.fixture
    def run_repository(self) -> MagicMock:
        repository = MagicMock()
        repository.start = AsyncMock(return_value=SimpleNamespace(id=uuid4()))
        repository.complete = AsyncMock()
        return repository

    @pytest.fixture
    def scheduler(self, mock_session, task_repository, run_repository) -> TaskScheduler:
        return TaskScheduler(mock_session, task_repository=task_repository, run_repository=run_repository)

    @pytest.mark.asyncio
    async def test_enqueue_returns_task_id(self, scheduler, task_repository, org_id):
        """Test that a queued task returns its id and defaults scheduled_at."""
        task_id = await scheduler.enqueue_task("guardrail_review", org_id, 4, {"reason": "x"})

        assert task_id == task_repository.enqueue.return_value.id
        kwargs = task_repository.enqueue.await_args.kwargs
        assert kwargs["priority"] == 4
        assert kwargs["scheduled_at"].tzinfo is not None

    @pytest.mark.asyncio
    async def test_enqueue_failure_returns_none(self, scheduler, task_repository, org_id):
        """Test that insert errors are reported as None instead of raised."""
        task_repository.enqueue.side_effect = IntegrityError("INSERT", {}, Exception("fk"))

        assert await scheduler.enqueue_task("guardrail_review", org_id, 4, {}) is None

    @pytest.mark.asyncio
    async def test_schedule_ingestion_payload(self, scheduler, task_repository, org_id):
        """Test the ingestion task type and payload."""
        await scheduler.schedule_ingestion(org_id, "fr-legifrance-core")

        kwargs = task_repository.enqueue.await_args.kwargs
        assert kwargs["task_type"] == INGESTION_TASK
        assert kwargs["payload"] == {"adapter_id": "fr-legifrance-core"}

    @pytest.mark.asyncio
    async def test_run_lifecycle(self, scheduler, run_repository, org_id):
        """Test that a run is opened and closed with its counts."""
        run_id = await scheduler.start_ingestion_run(org_id, "be-justel-core")
        completed = await scheduler.complete_ingestion_run(
            run_id, "completed", IngestionSummary(inserted=2, skipped=1, failures=3)
        )

        assert completed is True
        kwargs = run_repository.complete.await_args.kwargs
        assert (kwargs["inserted"], kwargs["skipped"], kwargs["failed"]) == (2, 1, 3)

    @pytest.mark.asyncio
    async def test_start_failure_returns_none(self, scheduler, run_repository, org_id):
        """Test that a failed run insert yields None."""
        run_repository.start.side_effect = IntegrityError("INSERT", {}, Exception("fk"))

        assert await scheduler.start_ingestion_run(org_id, "be-justel-core") is None

    @pytest.mark.asyncio
    async def test_complete_untracked_run(self, scheduler, run_repository):
        """Test that completing a missing run is a no-op."""
        assert await scheduler.complete_ingestion_run(None, "failed", IngestionSummary()) is False
        run_repository.complete.assert_not_awaited()
