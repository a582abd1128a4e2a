from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import AuthorityDomain
from lextrust.repositories.base_repository import BaseRepository


class AuthorityDomainRepository(BaseRepository[AuthorityDomain]):
    """Repository for allowlisted authority hosts and their crawl health."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AuthorityDomain)

    async def list_active_hosts(self, jurisdiction_codes: Optional[List[str]] = None) -> List[str]:
        """Hosts marked active, optionally restricted to some jurisdictions."""
        query = select(AuthorityDomain.host).where(AuthorityDomain.active.is_(True))
        if jurisdiction_codes:
            query = query.where(AuthorityDomain.jurisdiction_code.in_(jurisdiction_codes))
        result = await self.session.execute(query)
        return [row for row in result.scalars().all()]

    async def record_success(self, host: str, jurisdiction_code: str) -> None:
        """Reset the consecutive failure counter for host+jurisdiction."""
        now = datetime.now(timezone.utc)
        await self._upsert(
            host,
            jurisdiction_code,
            insert_values={"failure_count": 0, "last_success_at": now},
            update_values={"failure_count": 0, "last_success_at": now},
        )

    async def record_failure(self, host: str, jurisdiction_code: str) -> None:
        """Increment the consecutive failure counter for host+jurisdiction."""
        now = datetime.now(timezone.utc)
        await self._upsert(
            host,
            jurisdiction_code,
            insert_values={"failure_count": 1, "last_failure_at": now},
            update_values={
                "failure_count": AuthorityDomain.failure_count + 1,
                "last_failure_at": now,
            },
        )

    async def _upsert(self, host: str, jurisdiction_code: str, insert_values: dict, update_values: dict) -> None:
        try:
            stmt = insert(AuthorityDomain).values(
                host=host, jurisdiction_code=jurisdiction_code, active=True, **insert_values
            ).on_conflict_do_update(
                index_elements=[AuthorityDomain.host, AuthorityDomain.jurisdiction_code],
                set_=update_values,
            )
            await self.session.execute(stmt)
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error updating AuthorityDomain {host}/{jurisdiction_code}: {str(e)}",
                exc_info=True
            )
            raise
