"""Daily learning reports: drift and queue snapshots per organization."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import AgentRun
from lextrust.repositories.agent_activity_repository import AgentActivityRepository
from lextrust.repositories.job_repository import LearningJobRepository
from lextrust.repositories.report_repository import LearningReportRepository
from lextrust.schemas.learning import ReportResult
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

DRIFT_WINDOW = timedelta(hours=24)


def build_drift_payload(runs: Sequence[AgentRun], verdicts: Sequence[Optional[bool]]) -> Dict[str, Any]:
    """Summary of the last 24h of runs; ``allowlistedRatio`` is None without citations."""
    allowlisted_ratio = None
    if verdicts:
        allowlisted_ratio = sum(1 for verdict in verdicts if verdict) / len(verdicts)
    return {
        "totalRuns": len(runs),
        "highRiskRuns": sum(1 for run in runs if (run.risk_level or "").upper() == "HIGH"),
        "hitlEscalations": sum(1 for run in runs if run.hitl_required),
        "allowlistedRatio": allowlisted_ratio,
    }


def build_queue_payload(
    pending: Sequence[Tuple[Optional[str], Optional[datetime]]], captured_at: datetime
) -> Dict[str, Any]:
    by_type: Dict[str, int] = {}
    oldest: Optional[datetime] = None
    for job_type, created_at in pending:
        key = job_type or "unknown"
        by_type[key] = by_type.get(key, 0) + 1
        if created_at is not None and (oldest is None or created_at < oldest):
            oldest = created_at
    return {
        "pending": len(pending),
        "byType": by_type,
        "oldestCreatedAt": oldest.isoformat() if oldest else None,
        "capturedAt": captured_at.isoformat(),
    }


class LearningReportService:
    """Writes one drift and one queue report per organization per day."""

    def __init__(
        self,
        session: AsyncSession,
        activity_repository: Optional[AgentActivityRepository] = None,
        job_repository: Optional[LearningJobRepository] = None,
        report_repository: Optional[LearningReportRepository] = None,
    ):
        self.session = session
        self.activity = activity_repository or AgentActivityRepository(session)
        self.jobs = job_repository or LearningJobRepository(session)
        self.reports = report_repository or LearningReportRepository(session)

    async def drift_report(self, org_id: UUID) -> ReportResult:
        now = datetime.now(timezone.utc)
        entry = ReportResult(org_id=org_id)
        try:
            runs = await self.activity.runs_for_org_since(org_id, now - DRIFT_WINDOW)
            verdicts = await self.activity.citation_verdicts([run.id for run in runs])
            payload = build_drift_payload(runs, verdicts)
            async with self.session.begin_nested():
                await self.reports.upsert(org_id, "drift", now.date(), payload)
            entry.drift = True
        except SQLAlchemyError as e:
            LOGGER.warning(f"Drift report failed for {org_id}: {str(e)}")
            entry.drift = False
            entry.error = str(e)
        return entry

    async def queue_snapshot(self, org_id: UUID) -> ReportResult:
        now = datetime.now(timezone.utc)
        entry = ReportResult(org_id=org_id)
        try:
            pending = await self.jobs.pending_snapshot(org_id)
            async with self.session.begin_nested():
                await self.reports.upsert(org_id, "queue", now.date(), build_queue_payload(pending, now))
            entry.queue = True
        except SQLAlchemyError as e:
            LOGGER.warning(f"Queue snapshot failed for {org_id}: {str(e)}")
            entry.queue = False
            entry.error = str(e)
        return entry

    async def generate(self, org_ids: Sequence[UUID], drift: bool = True, queue: bool = True) -> List[ReportResult]:
        """Write the requested reports for each organization and commit once."""
        results: List[ReportResult] = []
        for org_id in org_ids:
            entry = ReportResult(org_id=org_id)
            if drift:
                drift_entry = await self.drift_report(org_id)
                entry.drift, entry.error = drift_entry.drift, drift_entry.error
            if queue:
                queue_entry = await self.queue_snapshot(org_id)
                entry.queue = queue_entry.queue
                entry.error = entry.error or queue_entry.error
            results.append(entry)
        await self.session.commit()
        return results
