from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import IngestionRun
from lextrust.repositories.base_repository import BaseRepository


class IngestionRunRepository(BaseRepository[IngestionRun]):
    """Repository for per-adapter ingestion run bookkeeping."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, IngestionRun)

    async def start(self, org_id: UUID, adapter_id: str) -> IngestionRun:
        return await self.create(
            org_id=org_id,
            adapter_id=adapter_id,
            status="running",
            started_at=datetime.now(timezone.utc),
        )

    async def complete(
        self,
        run_id: UUID,
        status: str,
        inserted: int,
        skipped: int,
        failed: int,
        error_message: Optional[str] = None,
    ) -> None:
        await self.session.execute(
            update(IngestionRun)
            .where(IngestionRun.id == run_id)
            .values(
                status=status,
                inserted_count=inserted,
                skipped_count=skipped,
                failed_count=failed,
                error_message=error_message,
                finished_at=datetime.now(timezone.utc),
            )
        )
