from datetime import datetime, timezone
from typing import List

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import AgentSynonym
from lextrust.repositories.base_repository import BaseRepository


class SynonymRepository(BaseRepository[AgentSynonym]):
    """Repository for query expansion synonyms."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, AgentSynonym)

    async def upsert(self, jurisdiction: str, term: str, expansions: List[str]) -> None:
        """Insert or replace expansions keyed on (jurisdiction, term)."""
        stmt = insert(AgentSynonym).values(
            jurisdiction=jurisdiction, term=term, expansions=expansions
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[AgentSynonym.jurisdiction, AgentSynonym.term],
            set_={"expansions": stmt.excluded.expansions, "updated_at": datetime.now(timezone.utc)},
        )
        await self.session.execute(stmt)
