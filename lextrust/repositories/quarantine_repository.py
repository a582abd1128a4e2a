from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import IngestionQuarantine
from lextrust.repositories.base_repository import BaseRepository


class QuarantineRepository(BaseRepository[IngestionQuarantine]):
    """Repository for rejected ingestion candidates."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, IngestionQuarantine)

    async def upsert(
        self,
        org_id: UUID,
        source_url: str,
        reason: str,
        details: Dict[str, Any],
        adapter_id: Optional[str] = None,
        canonical_url: Optional[str] = None,
    ) -> None:
        """Record a quarantine entry keyed on (org_id, source_url, reason).

        A repeat rejection for the same reason refreshes the snapshot and
        puts the entry back to ``pending`` review.
        """
        try:
            stmt = insert(IngestionQuarantine).values(
                org_id=org_id,
                adapter_id=adapter_id,
                source_url=source_url,
                canonical_url=canonical_url,
                reason=reason,
                details=details,
                status="pending",
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[
                    IngestionQuarantine.org_id,
                    IngestionQuarantine.source_url,
                    IngestionQuarantine.reason,
                ],
                set_={
                    "adapter_id": stmt.excluded.adapter_id,
                    "canonical_url": stmt.excluded.canonical_url,
                    "details": stmt.excluded.details,
                    "status": "pending",
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            await self.session.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error quarantining {source_url} ({reason}): {str(e)}",
                exc_info=True
            )
            raise
