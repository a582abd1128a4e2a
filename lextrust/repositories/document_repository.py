from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import Document
from lextrust.repositories.base_repository import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Repository for stored authority binaries."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Document)

    async def upsert(self, values: Dict[str, Any]) -> Document:
        """Insert or update a Document keyed on (org_id, bucket_id, storage_path)."""
        try:
            stmt = insert(Document).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[Document.org_id, Document.bucket_id, Document.storage_path],
                set_={
                    "source_id": stmt.excluded.source_id,
                    "name": stmt.excluded.name,
                    "mime_type": stmt.excluded.mime_type,
                    "bytes": stmt.excluded.bytes,
                    "residency_zone": stmt.excluded.residency_zone,
                    # new bytes must be synced again
                    "vector_store_status": "pending",
                    "vector_store_file_id": None,
                    "vector_store_error": None,
                    "vector_store_synced_at": None,
                },
            ).returning(Document)
            result = await self.session.scalars(
                stmt, execution_options={"populate_existing": True}
            )
            return result.one()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error upserting Document {values.get('storage_path')}: {str(e)}",
                exc_info=True
            )
            raise

    async def mark_vector_sync(
        self,
        document_id: UUID,
        status: str,
        file_id: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Record the vector store sync outcome (the only mutable Document fields)."""
        try:
            await self.session.execute(
                update(Document)
                .where(Document.id == document_id)
                .values(
                    vector_store_status=status,
                    vector_store_file_id=file_id,
                    vector_store_error=error,
                    vector_store_synced_at=datetime.now(timezone.utc) if status == "uploaded" else None,
                )
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating vector sync for Document {document_id}: {str(e)}", exc_info=True)
            raise
