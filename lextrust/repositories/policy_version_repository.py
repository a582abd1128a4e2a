from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import PolicyVersion
from lextrust.repositories.base_repository import BaseRepository
from lextrust.schemas.learning import PolicyStatus


class PolicyVersionRepository(BaseRepository[PolicyVersion]):
    """Repository for agent policy versions."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, PolicyVersion)

    async def next_version(self, org_id: UUID) -> int:
        """Next monotonic version number for an organization."""
        result = await self.session.execute(
            select(func.coalesce(func.max(PolicyVersion.version), 0)).where(PolicyVersion.org_id == org_id)
        )
        return int(result.scalar_one()) + 1

    async def create_version(
        self,
        org_id: UUID,
        change_set: List[Dict[str, Any]],
        status: str = PolicyStatus.DRAFT.value,
        name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PolicyVersion:
        version = await self.next_version(org_id)
        return await self.create(
            org_id=org_id,
            version=version,
            status=status,
            change_set=change_set,
            name=name,
            notes=notes,
        )

    async def latest_approved(self, org_id: Optional[UUID] = None) -> Optional[PolicyVersion]:
        """Approved version with the highest version number."""
        query = select(PolicyVersion).where(PolicyVersion.status == PolicyStatus.APPROVED.value)
        if org_id is not None:
            query = query.where(PolicyVersion.org_id == org_id)
        query = query.order_by(PolicyVersion.version.desc()).limit(1).with_for_update()
        result = await self.session.execute(query)
        return result.scalars().first()

    async def roll_back(self, version_id: UUID, notes: str) -> None:
        """Force a version to rolled_back and clear its approval metadata."""
        await self.session.execute(
            update(PolicyVersion)
            .where(PolicyVersion.id == version_id)
            .values(
                status=PolicyStatus.ROLLED_BACK.value,
                notes=notes,
                approved_by=None,
                approved_at=None,
                updated_at=datetime.now(timezone.utc),
            )
        )
