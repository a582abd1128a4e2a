"""Temporal worker service for the trust pipeline.

This worker:
- Connects to the Temporal server from settings
- Dynamically discovers and registers all workflows and activities
- Runs one worker per task queue
- Serves a FastAPI health endpoint next to the workers
"""

import asyncio
import os
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.worker import Worker
from temporalio.worker.workflow_sandbox import SandboxedWorkflowRunner, SandboxRestrictions

from lextrust.core.config import settings
from lextrust.core.database import DatabaseClient, close_database, init_database
from lextrust.temporal.core.discovery import discover_all

# Trigger discovery of all components
discover_all()

from lextrust.temporal.core.activity_registry import ActivityRegistry  # noqa: E402
from lextrust.temporal.core.constants import DEFAULT_TASK_QUEUE  # noqa: E402
from lextrust.temporal.core.workflow_registry import WorkflowRegistry  # noqa: E402
from lextrust.utils.logging import get_logger  # noqa: E402

LOGGER = get_logger(__name__)

app = FastAPI(title="LexTrust Worker Health Check")
app.state.db = None


@app.get("/health")
async def health():
    db: Optional[DatabaseClient] = app.state.db
    database = await db.health_check() if db else {"status": "not_initialized"}
    return {"status": "ok", "service": "temporal-worker", "database": database}


@app.get("/")
async def root():
    return {"message": "LexTrust worker is running", "health": "/health"}


async def run_health_check_server():
    """Run the health check server."""
    port = int(os.getenv("PORT", 8001))
    LOGGER.info(f"Starting health check server on port {port}")
    config = uvicorn.Config(app, host="0.0.0.0", port=port, log_level="info")
    server = uvicorn.Server(config)
    await server.serve()


async def connect_client(max_retries: int = 5, retry_delay: int = 5) -> Client:
    """Connect to Temporal, retrying while the server comes up."""
    target = f"{settings.temporal_host}:{settings.temporal_port}"
    attempt = 1
    while True:
        try:
            LOGGER.info(f"Connecting to Temporal server at {target} (Attempt {attempt}/{max_retries})")
            return await Client.connect(target_host=target, namespace=settings.temporal_namespace)
        except Exception as e:
            if attempt >= max_retries:
                LOGGER.error(f"Failed to connect to Temporal server after {max_retries} attempts: {e}")
                raise
            LOGGER.warning(f"Connection attempt {attempt} failed: {e}. Retrying in {retry_delay}s...")
            await asyncio.sleep(retry_delay)
            attempt += 1


async def run_workers():
    """Connect to Temporal and run one worker per task queue."""
    client = await connect_client()
    LOGGER.info("Successfully connected to Temporal server")

    all_workflows = WorkflowRegistry.get_all_workflows()
    all_activities = ActivityRegistry.get_all_activities()
    LOGGER.info(f"Registered {len(all_workflows)} workflows and {len(all_activities)} activities")

    queues: Dict[str, List[type]] = {}
    for wf_name, metadata in all_workflows.items():
        queue = metadata.task_queue or DEFAULT_TASK_QUEUE
        queues.setdefault(queue, []).append(metadata.workflow_class)
        LOGGER.debug(f"Workflow '{wf_name}' assigned to queue '{queue}'")

    workers = []
    for queue_name, workflows in queues.items():
        worker = Worker(
            client,
            task_queue=queue_name,
            workflows=workflows,
            activities=list(all_activities.values()),
            # candidates within an adapter are processed sequentially
            max_concurrent_activities=4,
            max_concurrent_workflow_tasks=10,
            workflow_runner=SandboxedWorkflowRunner(
                restrictions=SandboxRestrictions.default.with_passthrough_all_modules()
            ),
        )
        workers.append(worker.run())

    LOGGER.info(f"Workers polling queues: {list(queues.keys())}")
    await asyncio.gather(*workers)


async def main():
    """Start the health server and the Temporal workers."""
    app.state.db = await init_database()
    try:
        await asyncio.gather(run_health_check_server(), run_workers())
    finally:
        await close_database()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        LOGGER.info("Workers stopped by user")
    except Exception as e:
        LOGGER.error(f"Worker failed: {e}", exc_info=True)
        raise
