from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import CaseTreatment
from lextrust.repositories.base_repository import BaseRepository


class CaseTreatmentRepository(BaseRepository[CaseTreatment]):
    """Repository for case-law treatment edges."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, CaseTreatment)

    async def upsert_edge(
        self,
        org_id: UUID,
        cited_source_id: UUID,
        citing_source_id: UUID,
        treatment: str,
        weight: float,
        decided_at: Optional[date] = None,
        court_rank: Optional[str] = None,
    ) -> None:
        """Insert or update the edge citing -> cited for an organization."""
        try:
            stmt = insert(CaseTreatment).values(
                org_id=org_id,
                source_id=cited_source_id,
                citing_source_id=citing_source_id,
                treatment=treatment,
                weight=weight,
                court_rank=court_rank,
                decided_at=decided_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[CaseTreatment.org_id, CaseTreatment.source_id, CaseTreatment.citing_source_id],
                set_={
                    "treatment": stmt.excluded.treatment,
                    "weight": stmt.excluded.weight,
                    "court_rank": stmt.excluded.court_rank,
                    "decided_at": stmt.excluded.decided_at,
                },
            )
            await self.session.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error upserting treatment {citing_source_id} -> {cited_source_id}: {str(e)}",
                exc_info=True
            )
            raise
