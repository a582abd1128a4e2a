"""Learning loop runner.

Phases share no in-memory state; each one reads and writes the persisted
job, policy and metric tables and commits on its own.

Modes:
    hourly: collect, diagnose, process pending jobs, apply, gate, queue snapshot.
        Diagnosis and the gate run once per organization.
    nightly: hourly plus the drift report.
    reports: drift report only.
"""

from datetime import datetime, timezone
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.repositories.agent_activity_repository import AgentActivityRepository
from lextrust.schemas.learning import LearningLoopResult, LearningMode
from lextrust.services.learning.collector import SignalCollector
from lextrust.services.learning.diagnoser import LearningDiagnoser
from lextrust.services.learning.evaluation_gate import EvaluationGate
from lextrust.services.learning.job_processor import LearningJobProcessor
from lextrust.services.learning.policy_applier import PolicyApplier
from lextrust.services.learning.reports import LearningReportService
from lextrust.services.notifier import Notifier, build_notifier
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


class LearningLoop:
    def __init__(
        self,
        session: AsyncSession,
        collector: Optional[SignalCollector] = None,
        diagnoser: Optional[LearningDiagnoser] = None,
        processor: Optional[LearningJobProcessor] = None,
        applier: Optional[PolicyApplier] = None,
        gate: Optional[EvaluationGate] = None,
        reports: Optional[LearningReportService] = None,
        activity_repository: Optional[AgentActivityRepository] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.session = session
        self.collector = collector or SignalCollector(session)
        self.diagnoser = diagnoser or LearningDiagnoser(session)
        self.processor = processor or LearningJobProcessor(session)
        self.applier = applier or PolicyApplier(session)
        self.gate = gate or EvaluationGate(session, notifier=notifier or build_notifier())
        self.reports = reports or LearningReportService(session)
        self.activity = activity_repository or AgentActivityRepository(session)

    async def organisation_ids(self, org_id: Optional[UUID]) -> List[UUID]:
        if org_id is not None:
            return [org_id]
        return await self.activity.organization_ids()

    async def run(
        self, mode: Union[str, LearningMode, None] = None, org_id: Optional[UUID] = None
    ) -> LearningLoopResult:
        """Run the phases of ``mode`` for one organization or all of them."""
        resolved = mode if isinstance(mode, LearningMode) else LearningMode.parse(mode)
        result = LearningLoopResult(mode=resolved)
        LOGGER.info(
            f"Starting learning loop ({resolved.value})",
            extra={"org_id": str(org_id) if org_id else None},
        )

        organisations = await self.organisation_ids(org_id)
        if resolved in (LearningMode.HOURLY, LearningMode.NIGHTLY):
            result.signals_inserted = await self.collector.collect()
            # emitted jobs must carry an org for the applier
            for organisation in organisations:
                result.diagnoses.append(await self.diagnoser.diagnose(organisation))
            result.processed = await self.processor.process_pending(org_id)
            result.applied = await self.applier.apply()
            for organisation in organisations:
                result.gates.append(await self.gate.evaluate(organisation))

        if organisations:
            result.reports = await self.reports.generate(
                organisations,
                drift=resolved in (LearningMode.NIGHTLY, LearningMode.REPORTS),
                queue=resolved in (LearningMode.HOURLY, LearningMode.NIGHTLY),
            )

        result.finished_at = datetime.now(timezone.utc)
        LOGGER.info(
            f"Learning loop ({resolved.value}) finished",
            extra={
                "signals": result.signals_inserted,
                "processed": len(result.processed),
                "reports": len(result.reports),
            },
        )
        return result
