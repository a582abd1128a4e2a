from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import Source
from lextrust.repositories.base_repository import BaseRepository

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""
    return value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", r"\%").replace("_", r"\_")


# Columns refreshed when an upsert hits an existing org+URL row
_UPSERT_COLUMNS = (
    "jurisdiction_code",
    "source_type",
    "title",
    "publisher",
    "binding_lang",
    "consolidated",
    "adopted_date",
    "effective_date",
    "version_label",
    "language_note",
    "capture_sha256",
    "http_etag",
    "last_modified",
    "residency_zone",
    "link_last_status",
    "link_last_error",
    "link_last_checked",
    "eli",
    "ecli",
    "court_rank",
    "akoma_ntoso",
)


class SourceRepository(BaseRepository[Source]):
    """Repository for trusted legal Sources."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Source)

    async def get_by_org_url(self, org_id: UUID, source_url: str) -> Optional[Source]:
        """Get the Source for an organization and canonical URL."""
        query = select(Source).where(Source.org_id == org_id, Source.source_url == source_url)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def upsert(self, values: Dict[str, Any]) -> Source:
        """Insert or update a Source keyed on (org_id, source_url).

        Args:
            values: Column values; must include org_id and source_url.

        Returns:
            The persisted Source.
        """
        try:
            stmt = insert(Source).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[Source.org_id, Source.source_url],
                set_={
                    **{col: stmt.excluded[col] for col in _UPSERT_COLUMNS if col in values},
                    "updated_at": datetime.now(timezone.utc),
                },
            ).returning(Source)
            result = await self.session.scalars(
                stmt, execution_options={"populate_existing": True}
            )
            return result.one()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error upserting Source {values.get('source_url')}: {str(e)}",
                exc_info=True
            )
            raise

    async def refresh_unchanged(
        self,
        source_id: UUID,
        residency_zone: str,
        http_etag: Optional[str],
        last_modified: Optional[str],
    ) -> None:
        """Refresh bookkeeping on a Source whose content did not change."""
        await self._update_fields(
            source_id,
            residency_zone=residency_zone,
            http_etag=http_etag,
            last_modified=last_modified,
            link_last_status="ok",
            link_last_error=None,
            link_last_checked=datetime.now(timezone.utc),
        )

    async def record_link_failure(self, source_id: UUID, error: str) -> None:
        """Mark the Source's link health as failed."""
        await self._update_fields(
            source_id,
            link_last_status="failed",
            link_last_error=error,
            link_last_checked=datetime.now(timezone.utc),
        )

    async def _update_fields(self, source_id: UUID, **fields) -> None:
        try:
            await self.session.execute(
                update(Source)
                .where(Source.id == source_id)
                .values(**fields, updated_at=datetime.now(timezone.utc))
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating Source {source_id}: {str(e)}", exc_info=True)
            raise

    async def find_case_by_ecli(self, org_id: UUID, ecli: str) -> Optional[Source]:
        query = (
            select(Source)
            .where(Source.org_id == org_id, Source.source_type == "case", Source.ecli == ecli)
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def find_case_by_title(self, org_id: UUID, jurisdiction_code: str, reference: str) -> Optional[Source]:
        query = (
            select(Source)
            .where(
                Source.org_id == org_id,
                Source.source_type == "case",
                Source.jurisdiction_code == jurisdiction_code,
                Source.title.ilike(f"%{escape_like(reference)}%", escape=LIKE_ESCAPE),
            )
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def find_case_by_version_label(
        self, org_id: UUID, jurisdiction_code: str, reference: str
    ) -> Optional[Source]:
        query = (
            select(Source)
            .where(
                Source.org_id == org_id,
                Source.source_type == "case",
                Source.jurisdiction_code == jurisdiction_code,
                Source.version_label.ilike(f"%{escape_like(reference)}%", escape=LIKE_ESCAPE),
            )
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalars().first()
