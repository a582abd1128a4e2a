from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import LearningJob
from lextrust.repositories.base_repository import BaseRepository
from lextrust.schemas.learning import JobStatus

_TERMINAL = {JobStatus.COMPLETED.value, JobStatus.FAILED.value}


class LearningJobRepository(BaseRepository[LearningJob]):
    """Repository for the learning job state machine."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, LearningJob)

    async def create_job(
        self,
        job_type: str,
        status: str,
        payload: Dict[str, Any],
        org_id: Optional[UUID] = None,
    ) -> LearningJob:
        return await self.create(type=job_type, status=status, payload=payload, org_id=org_id)

    async def next_by_status(
        self, status: str, limit: int, org_id: Optional[UUID] = None
    ) -> List[LearningJob]:
        """Oldest jobs in a status, locked against concurrent consumers."""
        query = (
            select(LearningJob)
            .where(LearningJob.status == status)
            .order_by(LearningJob.created_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        if org_id is not None:
            query = query.where(LearningJob.org_id == org_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def mark_status(self, job_id: UUID, status: str, error: Optional[str] = None) -> None:
        """Transition a job; terminal states stamp completed_at."""
        now = datetime.now(timezone.utc)
        values: Dict[str, Any] = {"status": status, "updated_at": now}
        if status in _TERMINAL:
            values["completed_at"] = now
        if error:
            values["error"] = error
        try:
            await self.session.execute(
                update(LearningJob).where(LearningJob.id == job_id).values(**values)
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking job {job_id} as {status}: {str(e)}", exc_info=True)
            raise

    async def attach_to_version(self, job_ids: Sequence[UUID], version_id: UUID) -> int:
        """Move jobs to NEEDS_APPROVAL under a policy version."""
        if not job_ids:
            return 0
        result = await self.session.execute(
            update(LearningJob)
            .where(LearningJob.id.in_(list(job_ids)))
            .values(
                status=JobStatus.NEEDS_APPROVAL.value,
                policy_version_id=version_id,
                updated_at=datetime.now(timezone.utc),
            )
        )
        return result.rowcount or 0

    async def roll_back_for_version(self, version_id: UUID) -> int:
        """Move every job referencing a policy version to ROLLED_BACK."""
        result = await self.session.execute(
            update(LearningJob)
            .where(
                LearningJob.policy_version_id == version_id,
                LearningJob.status != JobStatus.ROLLED_BACK.value,
            )
            .values(status=JobStatus.ROLLED_BACK.value, updated_at=datetime.now(timezone.utc))
        )
        return result.rowcount or 0

    async def pending_snapshot(self, org_id: UUID) -> List[Tuple[Optional[str], Optional[datetime]]]:
        """(type, created_at) of every pending job for an organization."""
        result = await self.session.execute(
            select(LearningJob.type, LearningJob.created_at).where(
                LearningJob.status == JobStatus.PENDING.value,
                LearningJob.org_id == org_id,
            )
        )
        return [(row.type, row.created_at) for row in result]
