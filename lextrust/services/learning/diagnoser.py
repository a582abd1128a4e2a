"""Learning diagnoser: citation precision and dead-link metrics."""

from typing import Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.core.config import settings
from lextrust.repositories.agent_activity_repository import AgentActivityRepository
from lextrust.repositories.job_repository import LearningJobRepository
from lextrust.repositories.learning_repository import LearningMetricRepository
from lextrust.schemas.learning import DiagnosisResult, JobStatus
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Calibrated thresholds, shared with the evaluation gate
PRECISION_THRESHOLD = 0.95
DEAD_LINK_THRESHOLD = 0.01

ALLOWLISTED_RATIO_METRIC = "citations_allowlisted_ratio"
DEAD_LINK_RATE_METRIC = "dead_link_rate"

GUARDRAIL_TUNE_JOB = "guardrail_tune"
CANONICALIZER_UPDATE_JOB = "canonicalizer_update"


def citation_rates(verdicts: Sequence[Optional[bool]]) -> Tuple[float, float]:
    """Return ``(allowlisted_ratio, dead_link_rate)`` for citation verdicts.

    No citations means no evidence of regression: ``(1.0, 0.0)``.
    """
    total = len(verdicts)
    if total == 0:
        return 1.0, 0.0
    allowlisted = sum(1 for verdict in verdicts if verdict)
    return allowlisted / total, (total - allowlisted) / total


class LearningDiagnoser:
    """Computes citation health over recent runs and emits READY jobs."""

    def __init__(
        self,
        session: AsyncSession,
        activity_repository: Optional[AgentActivityRepository] = None,
        metric_repository: Optional[LearningMetricRepository] = None,
        job_repository: Optional[LearningJobRepository] = None,
    ):
        self.session = session
        self.activity = activity_repository or AgentActivityRepository(session)
        self.metrics = metric_repository or LearningMetricRepository(session)
        self.jobs = job_repository or LearningJobRepository(session)

    async def diagnose(self, org_id: Optional[UUID] = None, lookback_runs: Optional[int] = None) -> DiagnosisResult:
        """Record both metrics and enqueue remediation jobs on threshold breach.

        Args:
            org_id: Restrict to one organization's runs; global when None.
            lookback_runs: Number of most recent runs to inspect.

        Returns:
            The computed rates and the job types emitted.
        """
        limit = lookback_runs or settings.learning.diagnoser_lookback_runs
        window = f"last_{limit}_runs"

        run_ids = await self.activity.recent_run_ids(limit, org_id=org_id)
        verdicts = await self.activity.citation_verdicts(run_ids)
        allowlisted_ratio, dead_link_rate = citation_rates(verdicts)

        await self.metrics.record(ALLOWLISTED_RATIO_METRIC, allowlisted_ratio, window, org_id=org_id)
        await self.metrics.record(DEAD_LINK_RATE_METRIC, dead_link_rate, window, org_id=org_id)

        emitted = []
        if allowlisted_ratio < PRECISION_THRESHOLD:
            await self.jobs.create_job(
                GUARDRAIL_TUNE_JOB,
                JobStatus.READY.value,
                {"reason": "allowlisted_precision_regression", "value": allowlisted_ratio},
                org_id=org_id,
            )
            emitted.append(GUARDRAIL_TUNE_JOB)

        if dead_link_rate > DEAD_LINK_THRESHOLD:
            await self.jobs.create_job(
                CANONICALIZER_UPDATE_JOB,
                JobStatus.READY.value,
                {"reason": "dead_link_rate", "value": dead_link_rate},
                org_id=org_id,
            )
            emitted.append(CANONICALIZER_UPDATE_JOB)

        await self.session.commit()

        LOGGER.info(
            f"Diagnosed {len(verdicts)} citations over {len(run_ids)} runs",
            extra={
                "org_id": str(org_id) if org_id else None,
                "allowlisted_ratio": allowlisted_ratio,
                "dead_link_rate": dead_link_rate,
                "jobs": emitted,
            },
        )
        return DiagnosisResult(
            allowlisted_ratio=allowlisted_ratio,
            dead_link_rate=dead_link_rate,
            total_citations=len(verdicts),
            jobs_emitted=emitted,
        )
