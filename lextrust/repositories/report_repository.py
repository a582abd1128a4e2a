from datetime import date
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import LearningReport
from lextrust.repositories.base_repository import BaseRepository


class LearningReportRepository(BaseRepository[LearningReport]):
    """Repository for daily learning reports."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, LearningReport)

    async def upsert(self, org_id: UUID, kind: str, report_date: date, payload: Dict[str, Any]) -> None:
        """One report per (org_id, kind, report_date); later runs overwrite."""
        stmt = insert(LearningReport).values(
            org_id=org_id, kind=kind, report_date=report_date, payload=payload
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LearningReport.org_id, LearningReport.kind, LearningReport.report_date],
            set_={"payload": stmt.excluded.payload},
        )
        await self.session.execute(stmt)
