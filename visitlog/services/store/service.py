"""Append-only visit log store.

Every operation opens its own session from the shared session factory, so
request handlers and the retention job never share a session or a lock.
Identifiers come from the database sequence, which keeps concurrent appends
from colliding.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from advanced_alchemy.filters import LimitOffset, OrderBy

from visitlog.domain.logs.models import VisitLog
from visitlog.domain.logs.records import LogRecord, NewVisit
from visitlog.domain.logs.repositories import VisitLogRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LogStore:
    """Persist and query visit logs.

    Example:
        store = LogStore(session_factory)
        record = await store.append(new_visit)
        newest = await store.list(limit=10, offset=0)
        removed = await store.delete_older_than(30)
    """

    def __init__(
        self,
        session_factory: "Callable[[], AsyncSession]",
        *,
        max_page_size: int = MAX_PAGE_SIZE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory.
            max_page_size: Upper bound applied to ``list`` limits.
            clock: Source of "now" for record timestamps and retention cutoffs.
        """
        self.session_factory = session_factory
        self.max_page_size = max_page_size
        self.clock = clock

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return min(DEFAULT_PAGE_SIZE, self.max_page_size)
        return max(1, min(limit, self.max_page_size))

    async def append(self, visit: NewVisit) -> LogRecord:
        """Insert a visit and return the stored record.

        The row is committed before this returns. Storage errors propagate.
        """
        geo = visit.geo
        model = VisitLog(
            timestamp=self.clock(),
            masked_address=visit.masked_address,
            pseudonym=visit.pseudonym,
            raw_address=visit.raw_address,
            consented=visit.consented,
            geo_country=geo.country if geo else None,
            geo_region=geo.region if geo else None,
            geo_city=geo.city if geo else None,
            request_path=visit.request_path,
            user_agent=visit.user_agent,
        )
        async with self.session_factory() as session:
            repo = VisitLogRepository(session=session)
            model = await repo.add(model, auto_commit=True, auto_refresh=True)
            return LogRecord.from_model(model)

    async def list(self, limit: int | None = None, offset: int = 0) -> list[LogRecord]:
        """Return records newest first."""
        records, _total = await self.list_and_count(limit, offset)
        return records

    async def list_and_count(self, limit: int | None = None, offset: int = 0) -> tuple[list[LogRecord], int]:
        """Return one page of records (newest first) and the total record count."""
        page = LimitOffset(limit=self.clamp_limit(limit), offset=max(0, offset))
        async with self.session_factory() as session:
            repo = VisitLogRepository(session=session)
            results, total = await repo.list_and_count(page, OrderBy(field_name="id", sort_order="desc"))
            return [LogRecord.from_model(model) for model in results], total

    async def count(self) -> int:
        async with self.session_factory() as session:
            return await VisitLogRepository(session=session).count()

    async def delete_older_than(self, horizon_days: int) -> int:
        """Delete every record older than ``horizon_days`` days.

        Returns:
            Number of deleted records.
        """
        cutoff = self.clock() - timedelta(days=horizon_days)
        async with self.session_factory() as session:
            repo = VisitLogRepository(session=session)
            deleted = await repo.delete_before(cutoff)
            await session.commit()
        if deleted > 0:
            logger.info("Deleted %d visit logs older than %s", deleted, cutoff.isoformat())
        return deleted
