"""Evaluation gate: rolls back the live policy when citation health regresses."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.repositories.job_repository import LearningJobRepository
from lextrust.repositories.learning_repository import LearningMetricRepository
from lextrust.repositories.policy_version_repository import PolicyVersionRepository
from lextrust.schemas.learning import GateResult
from lextrust.services.learning.diagnoser import (
    ALLOWLISTED_RATIO_METRIC,
    DEAD_LINK_RATE_METRIC,
    DEAD_LINK_THRESHOLD,
    PRECISION_THRESHOLD,
)
from lextrust.services.notifier import Notifier, NoopNotifier
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


def breached_reasons(allowlisted_ratio: Optional[float], dead_link_rate: Optional[float]) -> List[str]:
    """Missing metrics never count as a breach."""
    reasons = []
    if allowlisted_ratio is not None and allowlisted_ratio < PRECISION_THRESHOLD:
        reasons.append("allowlisted_precision_regression")
    if dead_link_rate is not None and dead_link_rate > DEAD_LINK_THRESHOLD:
        reasons.append("dead_link_rate")
    return reasons


class EvaluationGate:
    """Circuit breaker over approved policy versions.

    Idempotent: once the approved version is rolled back there is nothing
    left to act on and later runs are no-ops.
    """

    def __init__(
        self,
        session: AsyncSession,
        metric_repository: Optional[LearningMetricRepository] = None,
        policy_repository: Optional[PolicyVersionRepository] = None,
        job_repository: Optional[LearningJobRepository] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.session = session
        self.metrics = metric_repository or LearningMetricRepository(session)
        self.policies = policy_repository or PolicyVersionRepository(session)
        self.jobs = job_repository or LearningJobRepository(session)
        self.notifier = notifier or NoopNotifier()

    async def evaluate(self, org_id: Optional[UUID] = None) -> GateResult:
        """Check the latest metrics and roll back on regression.

        Args:
            org_id: Organization whose approved version is guarded; metrics
                fall back to the global series when the org has none.

        Returns:
            Whether a threshold was breached and what was rolled back.
        """
        values = await self.metrics.latest_values([ALLOWLISTED_RATIO_METRIC, DEAD_LINK_RATE_METRIC], org_id)
        reasons = breached_reasons(values.get(ALLOWLISTED_RATIO_METRIC), values.get(DEAD_LINK_RATE_METRIC))
        if not reasons:
            return GateResult(breached=False)

        version = await self.policies.latest_approved(org_id)
        if version is None:
            LOGGER.info(
                f"Thresholds breached ({', '.join(reasons)}) but no approved policy version",
                extra={"org_id": str(org_id) if org_id else None},
            )
            await self.session.commit()
            return GateResult(breached=True, reasons=reasons)

        notes = f"Rolled back by evaluation gate: {', '.join(reasons)}"
        await self.policies.roll_back(version.id, notes)
        jobs_rolled_back = await self.jobs.roll_back_for_version(version.id)
        await self.session.commit()

        LOGGER.warning(
            f"Rolled back policy version {version.version}",
            extra={
                "org_id": str(version.org_id),
                "policy_version_id": str(version.id),
                "reasons": reasons,
                "jobs_rolled_back": jobs_rolled_back,
            },
        )
        await self.notifier.notify(
            "learning.policy_rolled_back",
            {
                "org_id": str(version.org_id),
                "policy_version_id": str(version.id),
                "version": version.version,
                "reasons": reasons,
            },
        )
        return GateResult(
            breached=True,
            reasons=reasons,
            rolled_back_version_id=version.id,
            rolled_back_version=version.version,
            jobs_rolled_back=jobs_rolled_back,
        )
