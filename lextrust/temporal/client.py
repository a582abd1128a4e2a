"""Temporal client and workflow start helpers."""

from datetime import datetime, timezone
from typing import List, Optional

from temporalio.client import Client as TemporalClient

from lextrust.core.config import settings
from lextrust.core.exceptions import ConfigurationError
from lextrust.schemas.learning import LearningMode
from lextrust.temporal.core.constants import DEFAULT_TASK_QUEUE


class TemporalClientManager:
    """Manages the Temporal client connection."""

    _client: Optional[TemporalClient] = None

    async def get_client(self) -> TemporalClient:
        if self._client is None:
            self._client = await TemporalClient.connect(
                f"{settings.temporal_host}:{settings.temporal_port}",
                namespace=settings.temporal_namespace,
            )
        return self._client


_temporal_manager = TemporalClientManager()


async def get_temporal_client() -> TemporalClient:
    return await _temporal_manager.get_client()


async def start_crawl(org_id: str, adapters: Optional[List[str]] = None) -> str:
    """Start a ``CrawlAuthoritiesWorkflow`` and return its workflow id.

    Raises:
        ConfigurationError: If no organization id is given.
    """
    if not org_id:
        raise ConfigurationError("An organization id is required to crawl authorities")
    client = await get_temporal_client()
    workflow_id = f"crawl-authorities-{org_id}-{datetime.now(timezone.utc):%Y%m%dT%H%M%S}"
    await client.start_workflow(
        "CrawlAuthoritiesWorkflow",
        {"org_id": org_id, "adapters": adapters},
        id=workflow_id,
        task_queue=DEFAULT_TASK_QUEUE,
    )
    return workflow_id


async def start_learning_loop(mode: str = "hourly", org_id: Optional[str] = None) -> str:
    """Start a ``LearningLoopWorkflow`` and return its workflow id."""
    resolved = LearningMode.parse(mode)
    client = await get_temporal_client()
    workflow_id = f"learning-{resolved.value}-{org_id or 'all'}-{datetime.now(timezone.utc):%Y%m%dT%H%M%S}"
    await client.start_workflow(
        "LearningLoopWorkflow",
        {"mode": resolved.value, "org_id": org_id},
        id=workflow_id,
        task_queue=DEFAULT_TASK_QUEUE,
    )
    return workflow_id
