"""Learning job processor.

Dispatches pending ``agent_learning_jobs`` by type. Every job is moved to
``processing`` right before dispatch and to ``completed`` or ``failed``
right after, inside the same transaction.
"""

import re
import unicodedata
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.core.config import settings
from lextrust.core.exceptions import JobValidationError
from lextrust.database.models import LearningJob
from lextrust.repositories.job_repository import LearningJobRepository
from lextrust.repositories.policy_version_repository import PolicyVersionRepository
from lextrust.repositories.synonym_repository import SynonymRepository
from lextrust.schemas.learning import JobStatus
from lextrust.services.scheduler import TaskScheduler
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

MIN_TERM_LENGTH = 5
TOKEN_SPLIT = re.compile(r"[^\w-]+|_")

DEFAULT_QUESTION = "Question non renseignée"
DEFAULT_INDEXING_NOTE = "Indexation manuelle requise."
DEFAULT_GUARDRAIL_REASON = "Ajustement de guardrail requis."


def normalise_term(term: str) -> str:
    """Lowercase and strip diacritics."""
    decomposed = unicodedata.normalize("NFD", term.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip()


def extract_synonym_terms(question: str) -> List[str]:
    """Tokens of at least five characters, raw and accent-free, in order of appearance."""
    tokens = TOKEN_SPLIT.split(unicodedata.normalize("NFKC", question.lower()))
    terms: List[str] = []
    for token in tokens:
        if len(token) < MIN_TERM_LENGTH:
            continue
        for term in (token, normalise_term(token)):
            if term and term not in terms:
                terms.append(term)
    return terms


def _country(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        country = value.get("country")
        if isinstance(country, str) and country.strip():
            return country.strip()
    return None


def extract_jurisdiction(payload: Dict[str, Any]) -> str:
    """Jurisdiction a query rewrite applies to, ``GLOBAL`` when unknown."""
    routing = payload.get("routing") if isinstance(payload.get("routing"), dict) else {}

    primary = _country(routing.get("primary"))
    if primary:
        return primary

    for candidates in (routing.get("detectedCandidates"), payload.get("detectedCandidates")):
        if isinstance(candidates, list):
            for candidate in candidates:
                country = _country(candidate)
                if country:
                    return country

    jurisdiction = payload.get("jurisdiction")
    if isinstance(jurisdiction, str) and jurisdiction.strip():
        return jurisdiction.strip()
    return "GLOBAL"


def _string(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    return value if isinstance(value, str) else None


class LearningJobProcessor:
    """Consumes pending learning jobs."""

    def __init__(
        self,
        session: AsyncSession,
        job_repository: Optional[LearningJobRepository] = None,
        synonym_repository: Optional[SynonymRepository] = None,
        policy_repository: Optional[PolicyVersionRepository] = None,
        scheduler: Optional[TaskScheduler] = None,
    ):
        self.session = session
        self.jobs = job_repository or LearningJobRepository(session)
        self.synonyms = synonym_repository or SynonymRepository(session)
        self.policies = policy_repository or PolicyVersionRepository(session)
        self.scheduler = scheduler or TaskScheduler(session)
        self._handlers: Dict[str, Callable[[LearningJob], Awaitable[None]]] = {
            "indexing_ticket": self.handle_indexing_ticket,
            "query_rewrite_ticket": self.handle_query_rewrite_ticket,
            "guardrail_tune_ticket": self.handle_guardrail_ticket,
            "review_feedback_ticket": self.handle_review_feedback_ticket,
        }

    async def process_pending(self, org_id: Optional[UUID] = None, limit: Optional[int] = None) -> List[UUID]:
        """Process the oldest pending jobs.

        Args:
            org_id: Restrict to one organization.
            limit: Batch size, 25 by default.

        Returns:
            Ids of the jobs that reached a terminal state.
        """
        batch = await self.jobs.next_by_status(
            JobStatus.PENDING.value, limit or settings.learning.processor_batch_size, org_id=org_id
        )
        processed: List[UUID] = []
        for job in batch:
            await self.process_job(job)
            processed.append(job.id)
        await self.session.commit()

        if processed:
            LOGGER.info(f"Processed {len(processed)} learning jobs", extra={"org_id": str(org_id) if org_id else None})
        return processed

    async def process_job(self, job: LearningJob) -> str:
        """Dispatch one job and record its terminal status.

        Returns:
            The terminal status written.
        """
        await self.jobs.mark_status(job.id, JobStatus.PROCESSING.value)
        try:
            if not isinstance(job.payload, dict):
                raise JobValidationError("payload_invalid")
            handler = self._handlers.get(job.type)
            if handler is not None:
                async with self.session.begin_nested():
                    await handler(job)
        except JobValidationError as e:
            LOGGER.warning(f"Learning job {job.id} ({job.type}) failed: {e.reason}")
            await self.jobs.mark_status(job.id, JobStatus.FAILED.value, error=e.reason)
            return JobStatus.FAILED.value
        except SQLAlchemyError as e:
            LOGGER.error(f"Learning job {job.id} ({job.type}) failed: {str(e)}", exc_info=True)
            await self.jobs.mark_status(job.id, JobStatus.FAILED.value, error=str(e))
            return JobStatus.FAILED.value

        await self.jobs.mark_status(job.id, JobStatus.COMPLETED.value)
        return JobStatus.COMPLETED.value

    async def _enqueue(self, task_type: str, org_id: UUID, priority: int, payload: Dict[str, Any]) -> UUID:
        task_id = await self.scheduler.enqueue_task(task_type, org_id, priority, payload)
        if task_id is None:
            raise JobValidationError("task_enqueue_failed", f"Could not enqueue {task_type} task")
        return task_id

    async def handle_indexing_ticket(self, job: LearningJob) -> None:
        if not job.org_id:
            raise JobValidationError("missing_org")
        payload = job.payload
        await self._enqueue(
            "indexing_review",
            job.org_id,
            5,
            {
                "question": _string(payload, "question") or DEFAULT_QUESTION,
                "note": _string(payload, "note") or DEFAULT_INDEXING_NOTE,
            },
        )

    async def handle_query_rewrite_ticket(self, job: LearningJob) -> None:
        payload = job.payload
        if not payload:
            raise JobValidationError("payload_invalid")
        question = _string(payload, "question")
        if not question:
            raise JobValidationError("question_missing")

        terms = extract_synonym_terms(question)
        if not terms:
            return

        jurisdiction = extract_jurisdiction(payload)
        expansions = []
        for term in terms:
            normalised = normalise_term(term)
            if normalised and normalised not in expansions:
                expansions.append(normalised)
        for term in terms:
            await self.synonyms.upsert(jurisdiction, term, expansions)

    async def handle_guardrail_ticket(self, job: LearningJob) -> None:
        if not job.org_id:
            raise JobValidationError("missing_org")
        payload = job.payload
        reason = _string(payload, "reason") or DEFAULT_GUARDRAIL_REASON
        await self._enqueue(
            "guardrail_review",
            job.org_id,
            4,
            {"reason": reason, "question": payload.get("question")},
        )

        # audit trail only
        try:
            async with self.session.begin_nested():
                await self.policies.create_version(
                    job.org_id,
                    change_set=[],
                    name=_string(payload, "policy") or "guardrail_adjustment",
                    notes=reason,
                )
        except SQLAlchemyError as e:
            LOGGER.warning(f"Could not record guardrail policy note for job {job.id}: {str(e)}")

    async def handle_review_feedback_ticket(self, job: LearningJob) -> None:
        if not job.org_id:
            raise JobValidationError("missing_org")
        payload = job.payload
        resolution = payload.get("resolutionMinutes")
        await self._enqueue(
            "review_feedback",
            job.org_id,
            3,
            {
                "runId": _string(payload, "runId"),
                "hitlId": _string(payload, "hitlId") or str(job.id),
                "action": _string(payload, "action") or "review_feedback",
                "reviewerId": _string(payload, "reviewerId"),
                "comment": _string(payload, "comment"),
                "resolutionMinutes": resolution if isinstance(resolution, (int, float)) and not isinstance(resolution, bool) else None,
            },
        )
