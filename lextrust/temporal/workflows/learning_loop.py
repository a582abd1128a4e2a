"""Learning loop workflow, started on an hourly or nightly schedule."""

from datetime import timedelta
from typing import Dict

from temporalio import workflow
from temporalio.common import RetryPolicy

from lextrust.temporal.core.constants import LEARNING_ACTIVITY_TIMEOUT_SECONDS
from lextrust.temporal.core.workflow_registry import WorkflowRegistry, WorkflowType


@WorkflowRegistry.register(category=WorkflowType.LEARNING)
@workflow.defn
class LearningLoopWorkflow:
    @workflow.run
    async def run(self, payload: Dict) -> dict:
        """Run the learning loop.

        Args:
            payload: ``{"mode": "hourly" | "nightly" | "reports", "org_id": str | None}``.
        """
        return await workflow.execute_activity(
            "run_learning_loop",
            args=[payload.get("mode") or "hourly", payload.get("org_id")],
            start_to_close_timeout=timedelta(seconds=LEARNING_ACTIVITY_TIMEOUT_SECONDS),
            retry_policy=RetryPolicy(
                initial_interval=timedelta(seconds=10),
                maximum_attempts=3,
            ),
        )
