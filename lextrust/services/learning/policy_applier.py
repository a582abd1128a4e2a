"""Policy applier.

Turns READY learning jobs into draft policy versions awaiting approval, one
version per organization per batch.
"""

from collections import OrderedDict
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.core.config import settings
from lextrust.database.models import LearningJob
from lextrust.repositories.job_repository import LearningJobRepository
from lextrust.repositories.policy_version_repository import PolicyVersionRepository
from lextrust.schemas.learning import ApplyResult, JobStatus, PolicyStatus
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


def group_by_org(jobs: List[LearningJob]) -> "OrderedDict[Optional[UUID], List[LearningJob]]":
    groups: "OrderedDict[Optional[UUID], List[LearningJob]]" = OrderedDict()
    for job in jobs:
        groups.setdefault(job.org_id, []).append(job)
    return groups


class PolicyApplier:
    """Batches READY jobs into per-organization draft policy versions."""

    def __init__(
        self,
        session: AsyncSession,
        job_repository: Optional[LearningJobRepository] = None,
        policy_repository: Optional[PolicyVersionRepository] = None,
    ):
        self.session = session
        self.jobs = job_repository or LearningJobRepository(session)
        self.policies = policy_repository or PolicyVersionRepository(session)

    async def apply(self, limit: Optional[int] = None) -> ApplyResult:
        """Draft one policy version per organization from READY jobs.

        Each organization's group moves as a unit inside a savepoint: a failed
        version insert leaves every job of that group READY for the next run
        while other organizations still progress.
        """
        ready = await self.jobs.next_by_status(
            JobStatus.READY.value, limit or settings.learning.applier_batch_size
        )
        result = ApplyResult()
        if not ready:
            return result

        for org_id, jobs in group_by_org(ready).items():
            if org_id is None:
                for job in jobs:
                    await self.jobs.mark_status(job.id, JobStatus.FAILED.value, error="missing_org")
                result.jobs_failed += len(jobs)
                continue

            change_set: List[Dict] = [{"job_type": job.type, "payload": job.payload} for job in jobs]
            try:
                async with self.session.begin_nested():
                    version = await self.policies.create_version(
                        org_id, change_set=change_set, status=PolicyStatus.DRAFT.value
                    )
                    moved = await self.jobs.attach_to_version([job.id for job in jobs], version.id)
            except SQLAlchemyError as e:
                LOGGER.error(
                    f"Policy version insert failed, {len(jobs)} jobs stay READY: {str(e)}",
                    exc_info=True,
                    extra={"org_id": str(org_id)},
                )
                result.orgs_skipped.append(org_id)
                continue

            result.versions_created.append(version.id)
            result.jobs_moved += moved
            LOGGER.info(
                f"Drafted policy version {version.version} from {moved} jobs",
                extra={"org_id": str(org_id), "policy_version_id": str(version.id)},
            )

        await self.session.commit()
        return result
