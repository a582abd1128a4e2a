"""Read-only access to the agent runtime's activity tables."""

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import AgentRun, HitlReview, Organization, RunCitation, ToolTelemetry


class AgentActivityRepository:
    """Queries over agent runs, citations, telemetry and HITL reviews."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def runs_since(self, since: datetime, limit: int = 200) -> List[AgentRun]:
        result = await self.session.execute(
            select(AgentRun).where(AgentRun.created_at >= since).limit(limit)
        )
        return list(result.scalars().all())

    async def citations_since(self, since: datetime, limit: int = 500) -> List[RunCitation]:
        result = await self.session.execute(
            select(RunCitation).where(RunCitation.created_at >= since).limit(limit)
        )
        return list(result.scalars().all())

    async def telemetry_since(self, since: datetime, limit: int = 500) -> List[ToolTelemetry]:
        result = await self.session.execute(
            select(ToolTelemetry).where(ToolTelemetry.created_at >= since).limit(limit)
        )
        return list(result.scalars().all())

    async def hitl_since(self, since: datetime, limit: int = 200) -> List[HitlReview]:
        result = await self.session.execute(
            select(HitlReview).where(HitlReview.created_at >= since).limit(limit)
        )
        return list(result.scalars().all())

    async def recent_run_ids(self, limit: int, org_id: Optional[UUID] = None) -> List[UUID]:
        """Ids of the most recent runs, newest first."""
        query = select(AgentRun.id).order_by(AgentRun.created_at.desc()).limit(limit)
        if org_id is not None:
            query = query.where(AgentRun.org_id == org_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def citation_verdicts(self, run_ids: Sequence[UUID]) -> List[Optional[bool]]:
        """domain_ok of every citation attached to the given runs."""
        if not run_ids:
            return []
        result = await self.session.execute(
            select(RunCitation.domain_ok).where(
                RunCitation.run_id.in_(list(run_ids)),
                RunCitation.run_id.is_not(None),
            )
        )
        return list(result.scalars().all())

    async def runs_for_org_since(self, org_id: UUID, since: datetime) -> List[AgentRun]:
        result = await self.session.execute(
            select(AgentRun).where(AgentRun.org_id == org_id, AgentRun.started_at >= since)
        )
        return list(result.scalars().all())

    async def organization_ids(self) -> List[UUID]:
        result = await self.session.execute(select(Organization.id))
        return list(result.scalars().all())
