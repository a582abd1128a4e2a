"""Authority crawl workflow.

Runs the requested adapters (all by default) one after the other for a
single organization, using activity string names so the workflow sandbox
never imports the ingestion stack.
"""

from datetime import timedelta
from typing import Dict

from temporalio import workflow
from temporalio.common import RetryPolicy

from lextrust.temporal.core.constants import (
    INGESTION_ACTIVITY_TIMEOUT_SECONDS,
    SHORT_ACTIVITY_TIMEOUT_SECONDS,
)
from lextrust.temporal.core.workflow_registry import WorkflowRegistry, WorkflowType


@WorkflowRegistry.register(category=WorkflowType.INGESTION)
@workflow.defn
class CrawlAuthoritiesWorkflow:
    """Ingests official legal sources for one organization."""

    def __init__(self):
        self._status = "initialized"
        self._current_adapter: str | None = None
        self._completed = 0

    @workflow.query
    def get_status(self) -> dict:
        return {
            "status": self._status,
            "current_adapter": self._current_adapter,
            "completed_adapters": self._completed,
        }

    @workflow.run
    async def run(self, payload: Dict) -> dict:
        """Execute the crawl.

        Args:
            payload: ``{"org_id": str, "adapters": [str] | None}``.

        Returns:
            Per-adapter summaries and the aggregated totals.
        """
        org_id = payload.get("org_id")
        if not org_id:
            self._status = "failed"
            return {"status": "FAILED", "error": "org_id is required"}

        self._status = "running"
        adapter_ids = await workflow.execute_activity(
            "resolve_ingestion_adapters",
            payload.get("adapters"),
            start_to_close_timeout=timedelta(seconds=SHORT_ACTIVITY_TIMEOUT_SECONDS),
            retry_policy=RetryPolicy(maximum_attempts=1),
        )

        results: Dict[str, dict] = {}
        totals = {"inserted": 0, "skipped": 0, "failures": 0}
        for adapter_id in adapter_ids:
            self._current_adapter = adapter_id
            summary = await workflow.execute_activity(
                "run_ingestion_adapter",
                args=[org_id, adapter_id],
                start_to_close_timeout=timedelta(seconds=INGESTION_ACTIVITY_TIMEOUT_SECONDS),
                # re-running an adapter is safe: unchanged documents are skipped
                retry_policy=RetryPolicy(
                    initial_interval=timedelta(seconds=30),
                    maximum_attempts=2,
                ),
            )
            results[adapter_id] = summary
            for key in totals:
                totals[key] += summary.get(key, 0)
            self._completed += 1

        self._current_adapter = None
        self._status = "completed"
        return {"status": "COMPLETED", "org_id": org_id, "results": results, "totals": totals}
