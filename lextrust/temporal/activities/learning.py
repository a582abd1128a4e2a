"""Temporal activities for the learning loop."""

from typing import Dict, Optional
from uuid import UUID

from temporalio import activity
from temporalio.exceptions import ApplicationError

from lextrust.core.database import get_session_maker
from lextrust.core.exceptions import ConfigurationError
from lextrust.services.learning.loop import LearningLoop
from lextrust.temporal.core.activity_registry import ActivityRegistry
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _parse_org(org_id: Optional[str]) -> Optional[UUID]:
    if not org_id:
        return None
    try:
        return UUID(org_id)
    except ValueError as e:
        raise ApplicationError(f"Invalid organization id: {org_id}", type="ConfigurationError", non_retryable=True) from e


@ActivityRegistry.register("learning", "run_learning_loop")
@activity.defn
async def run_learning_loop(mode: str, org_id: Optional[str] = None) -> Dict:
    """Run one learning loop invocation and return its summary as JSON."""
    activity.logger.info(f"Running learning loop ({mode}) for org {org_id or 'all'}")
    org_uuid = _parse_org(org_id)
    try:
        async with get_session_maker()() as session:
            result = await LearningLoop(session).run(mode, org_uuid)
    except ConfigurationError as e:
        raise ApplicationError(str(e), type="ConfigurationError", non_retryable=True) from e

    LOGGER.info(f"Learning loop ({mode}) processed {len(result.processed)} jobs")
    return result.model_dump(mode="json")


