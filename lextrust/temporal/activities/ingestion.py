"""Temporal activities for authority ingestion."""

from typing import Dict, List, Optional

from temporalio import activity
from temporalio.exceptions import ApplicationError

from lextrust.core.database import get_session_maker
from lextrust.core.exceptions import ConfigurationError
from lextrust.services.ingestion.adapters import AdapterRegistry, get_adapter
from lextrust.services.ingestion.orchestrator import IngestionOrchestrator
from lextrust.temporal.core.activity_registry import ActivityRegistry
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


@ActivityRegistry.register("ingestion", "resolve_ingestion_adapters")
@activity.defn
async def resolve_ingestion_adapters(adapter_ids: Optional[List[str]] = None) -> List[str]:
    """Validate requested adapter ids, or list every registered adapter.

    Raises:
        ApplicationError: Non-retryable, when an adapter id is unknown.
    """
    registered = list(AdapterRegistry.get_all_adapters().keys())
    if not adapter_ids:
        return registered

    unknown = [adapter_id for adapter_id in adapter_ids if adapter_id not in registered]
    if unknown:
        raise ApplicationError(
            f"Unknown adapters: {', '.join(unknown)}",
            type="ConfigurationError",
            non_retryable=True,
        )
    return list(adapter_ids)


@ActivityRegistry.register("ingestion", "run_ingestion_adapter")
@activity.defn
async def run_ingestion_adapter(org_id: str, adapter_id: str) -> Dict:
    """Run one adapter for an organization.

    Args:
        org_id: Organization owning the ingested sources.
        adapter_id: Registered adapter id.

    Returns:
        The run summary: inserted, skipped and failures.
    """
    activity.logger.info(f"Running ingestion adapter {adapter_id} for org {org_id}")
    adapter = get_adapter(adapter_id)
    if adapter is None:
        raise ApplicationError(f"Unknown adapter: {adapter_id}", type="ConfigurationError", non_retryable=True)

    try:
        async with get_session_maker()() as session:
            orchestrator = IngestionOrchestrator(session)
            summary = await orchestrator.run_adapter(adapter, org_id)
    except ConfigurationError as e:
        LOGGER.error(f"Ingestion misconfigured: {str(e)}")
        raise ApplicationError(str(e), type="ConfigurationError", non_retryable=True) from e

    return summary.model_dump()
