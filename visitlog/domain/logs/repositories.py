"""Repository for visit log data."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete
from advanced_alchemy.repository import SQLAlchemyAsyncRepository

from visitlog.domain.logs.models import VisitLog


class VisitLogRepository(SQLAlchemyAsyncRepository[VisitLog]):
    """Repository for VisitLog model."""

    model_type = VisitLog

    async def delete_before(self, cutoff: datetime) -> int:
        """Delete visit logs written before ``cutoff``.

        Used for retention cleanup. Does not commit.

        Args:
            cutoff: Delete records with a timestamp strictly before this datetime.

        Returns:
            Number of deleted records.
        """
        if cutoff.tzinfo is None:
            cutoff = cutoff.replace(tzinfo=timezone.utc)

        stmt = delete(VisitLog).where(VisitLog.timestamp < cutoff)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
