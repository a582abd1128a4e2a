from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.database.models import LearningMetric, LearningSignal
from lextrust.repositories.base_repository import BaseRepository
from lextrust.schemas.learning import SignalRecord


class LearningSignalRepository(BaseRepository[LearningSignal]):
    """Append-only learning signal log."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, LearningSignal)

    async def insert_many(self, signals: Sequence[SignalRecord]) -> int:
        """Bulk insert signals.

        Returns:
            Number of rows written.
        """
        if not signals:
            return 0
        rows = [
            {
                "org_id": signal.org_id,
                "run_id": signal.run_id,
                "source": signal.source.value,
                "kind": signal.kind,
                "payload": signal.payload,
            }
            for signal in signals
        ]
        try:
            await self.session.execute(insert(LearningSignal), rows)
            return len(rows)
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting {len(rows)} learning signals: {str(e)}", exc_info=True)
            raise


class LearningMetricRepository(BaseRepository[LearningMetric]):
    """Append-only metric time series."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, LearningMetric)

    async def record(
        self,
        metric: str,
        value: float,
        window: str,
        org_id: Optional[UUID] = None,
        dims: Optional[Dict[str, Any]] = None,
    ) -> LearningMetric:
        return await self.create(
            metric=metric, value=value, window=window, org_id=org_id, dims=dims or {}
        )

    async def latest(self, metric: str, org_id: Optional[UUID] = None) -> Optional[LearningMetric]:
        """Most recent value of a metric by computed_at.

        With an org id the org-scoped series is used, falling back to the
        global (NULL org) series when the org has none.
        """
        query = select(LearningMetric).where(LearningMetric.metric == metric)
        if org_id is not None:
            scoped = await self.session.execute(
                query.where(LearningMetric.org_id == org_id)
                .order_by(LearningMetric.computed_at.desc())
                .limit(1)
            )
            found = scoped.scalars().first()
            if found is not None:
                return found
        result = await self.session.execute(
            query.where(LearningMetric.org_id.is_(None))
            .order_by(LearningMetric.computed_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def latest_values(self, metrics: List[str], org_id: Optional[UUID] = None) -> Dict[str, float]:
        """Latest value per metric name; metrics with no rows are omitted."""
        values: Dict[str, float] = {}
        for name in metrics:
            row = await self.latest(name, org_id)
            if row is not None:
                values[name] = float(row.value)
        return values
