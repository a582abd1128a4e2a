from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import AgentTask
from lextrust.repositories.base_repository import BaseRepository


class TaskQueueRepository(BaseRepository[AgentTask]):
    """Repository for the agent task queue."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AgentTask)

    async def enqueue(
        self,
        task_type: str,
        org_id: UUID,
        payload: Dict[str, Any],
        priority: int,
        scheduled_at: datetime,
    ) -> AgentTask:
        return await self.create(
            type=task_type,
            org_id=org_id,
            payload=payload,
            priority=priority,
            status="scheduled",
            scheduled_at=scheduled_at,
        )
