"""Task scheduler and ingestion run bookkeeping.

Advisory bookkeeping only: every write runs in its own savepoint and failures
are logged and reported as ``None`` instead of raised, so callers that need a
guarantee check the return value.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.repositories.ingestion_run_repository import IngestionRunRepository
from lextrust.repositories.task_queue_repository import TaskQueueRepository
from lextrust.schemas.ingestion import IngestionSummary
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

INGESTION_TASK = "ingestion_run"
LEARNING_TASK = "learning_loop"


class TaskScheduler:
    """Thin queue over ``agent_task_queue`` plus ``ingestion_runs`` tracking."""

    def __init__(
        self,
        session: AsyncSession,
        task_repository: Optional[TaskQueueRepository] = None,
        run_repository: Optional[IngestionRunRepository] = None,
    ):
        self.session = session
        self.task_repository = task_repository or TaskQueueRepository(session)
        self.run_repository = run_repository or IngestionRunRepository(session)

    async def enqueue_task(
        self,
        task_type: str,
        org_id: UUID,
        priority: int,
        payload: Dict[str, Any],
        scheduled_at: Optional[datetime] = None,
    ) -> Optional[UUID]:
        """Queue a task with status ``scheduled``.

        Args:
            task_type: Consumer-facing task type, e.g. ``guardrail_review``.
            org_id: Owning organization.
            priority: Lower runs first.
            payload: Task payload.
            scheduled_at: When the task becomes due; now by default.

        Returns:
            The task id, or None if the insert failed.
        """
        try:
            async with self.session.begin_nested():
                task = await self.task_repository.enqueue(
                    task_type=task_type,
                    org_id=org_id,
                    payload=payload,
                    priority=priority,
                    scheduled_at=scheduled_at or datetime.now(timezone.utc),
                )
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Failed to enqueue task {task_type}: {str(e)}",
                exc_info=True,
                extra={"org_id": str(org_id), "task_type": task_type},
            )
            return None
        return task.id

    async def start_ingestion_run(self, org_id: UUID, adapter_id: str) -> Optional[UUID]:
        """Open an ingestion run in ``running`` state; None on failure."""
        try:
            async with self.session.begin_nested():
                run = await self.run_repository.start(org_id, adapter_id)
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Failed to start ingestion run for {adapter_id}: {str(e)}",
                exc_info=True,
                extra={"org_id": str(org_id), "adapter_id": adapter_id},
            )
            return None
        return run.id

    async def complete_ingestion_run(
        self,
        run_id: Optional[UUID],
        status: str,
        summary: IngestionSummary,
        error_message: Optional[str] = None,
    ) -> bool:
        """Close an ingestion run with its counts; False on failure."""
        if run_id is None:
            return False
        try:
            async with self.session.begin_nested():
                await self.run_repository.complete(
                    run_id,
                    status=status,
                    inserted=summary.inserted,
                    skipped=summary.skipped,
                    failed=summary.failures,
                    error_message=error_message,
                )
        except SQLAlchemyError as e:
            LOGGER.error(f"Failed to complete ingestion run {run_id}: {str(e)}", exc_info=True)
            return False
        return True

    async def schedule_ingestion(self, org_id: UUID, adapter_id: str, priority: int = 5) -> Optional[UUID]:
        return await self.enqueue_task(INGESTION_TASK, org_id, priority, {"adapter_id": adapter_id})

    async def schedule_evaluation(self, org_id: UUID, mode: str = "hourly", priority: int = 5) -> Optional[UUID]:
        return await self.enqueue_task(LEARNING_TASK, org_id, priority, {"mode": mode})
