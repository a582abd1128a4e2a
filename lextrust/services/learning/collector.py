"""Learning signal collector.

Maps the agent runtime's recent activity (runs, citation checks, tool
telemetry, HITL reviews) into uniform ``learning_signals`` rows.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.core.config import settings
from lextrust.database.models import AgentRun, HitlReview, RunCitation, ToolTelemetry
from lextrust.repositories.agent_activity_repository import AgentActivityRepository
from lextrust.repositories.learning_repository import LearningSignalRepository
from lextrust.schemas.learning import SignalRecord, SignalSource
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

RUN_LIMIT = 200
CITATION_LIMIT = 500
TELEMETRY_LIMIT = 500
HITL_LIMIT = 200


def run_signal(row: AgentRun) -> SignalRecord:
    return SignalRecord(
        org_id=row.org_id,
        run_id=row.id,
        source=SignalSource.AGENT_RUN,
        kind=row.status,
        payload={
            "risk_level": row.risk_level,
            "refusal_reason": row.refusal_reason,
            "jurisdiction": row.jurisdiction_json,
        },
    )


def citation_signal(row: RunCitation) -> Optional[SignalRecord]:
    """Citations detached from a run carry no learning value."""
    if row.run_id is None:
        return None
    return SignalRecord(
        org_id=row.org_id,
        run_id=row.run_id,
        source=SignalSource.RUN_CITATION,
        kind="allowlisted" if row.domain_ok else "violation",
        payload={"url": row.url, "translation_flag": row.translation_flag},
    )


def telemetry_signal(row: ToolTelemetry) -> SignalRecord:
    return SignalRecord(
        org_id=row.org_id,
        run_id=None,
        source=SignalSource.TOOL_TELEMETRY,
        kind="success" if row.success else "failure",
        payload={"tool": row.tool_name, "latency_ms": row.latency_ms, "error_code": row.error_code},
    )


def hitl_signal(row: HitlReview) -> SignalRecord:
    return SignalRecord(
        org_id=row.org_id,
        run_id=row.run_id,
        source=SignalSource.HITL,
        kind=row.status,
        payload={
            "reviewer_comment": row.reviewer_comment,
            "updated_at": row.updated_at.isoformat() if row.updated_at else None,
        },
    )


class SignalCollector:
    """Appends learning signals for a fixed trailing window."""

    def __init__(
        self,
        session: AsyncSession,
        activity_repository: Optional[AgentActivityRepository] = None,
        signal_repository: Optional[LearningSignalRepository] = None,
    ):
        self.session = session
        self.activity = activity_repository or AgentActivityRepository(session)
        self.signals = signal_repository or LearningSignalRepository(session)

    async def build_signals(self, since: datetime) -> List[SignalRecord]:
        runs = await self.activity.runs_since(since, limit=RUN_LIMIT)
        citations = await self.activity.citations_since(since, limit=CITATION_LIMIT)
        telemetry = await self.activity.telemetry_since(since, limit=TELEMETRY_LIMIT)
        reviews = await self.activity.hitl_since(since, limit=HITL_LIMIT)

        signals: List[SignalRecord] = [run_signal(row) for row in runs]
        signals.extend(signal for signal in map(citation_signal, citations) if signal is not None)
        signals.extend(telemetry_signal(row) for row in telemetry)
        signals.extend(hitl_signal(row) for row in reviews)
        return signals

    async def collect(self, window_minutes: Optional[int] = None) -> int:
        """Collect and persist signals from the last ``window_minutes``.

        Returns:
            Number of signals inserted.
        """
        minutes = window_minutes or settings.learning.collector_window_minutes
        since = datetime.now(timezone.utc) - timedelta(minutes=minutes)

        signals = await self.build_signals(since)
        inserted = await self.signals.insert_many(signals)
        await self.session.commit()

        LOGGER.info(
            f"Collected {inserted} learning signals",
            extra={"window_minutes": minutes},
        )
        return inserted
