"""Admin log viewer API endpoints."""
from __future__ import annotations

from dataclasses import dataclass

from litestar import Controller, get
from litestar.di import Provide
from advanced_alchemy.filters import LimitOffset

from visitlog.domain.logs.records import LogRecord
from visitlog.services.store import LogStore
from visitlog.api.dependencies import provide_limit_offset_pagination, provide_log_store
from visitlog.api.guards import basic_auth_guard


@dataclass
class VisitLogPage:
    """One page of visit logs, newest first."""

    total: int
    limit: int
    offset: int
    page: int
    logs: list[LogRecord]


class AdminController(Controller):
    """Admin endpoints

    Read-only access to stored visit logs behind HTTP basic auth.
    """
    path = "/admin"
    guards = [basic_auth_guard]
    tags = ["Admin"]

    dependencies = {
        "log_store": Provide(provide_log_store, sync_to_thread=False),
        "limit_offset": Provide(provide_limit_offset_pagination, sync_to_thread=False),
    }

    @get("/logs")
    async def list_logs(
        self,
        log_store: LogStore,
        limit_offset: LimitOffset,
    ) -> VisitLogPage:
        """List visit logs with pagination."""
        logs, total = await log_store.list_and_count(limit_offset.limit, limit_offset.offset)
        return VisitLogPage(
            total=total,
            limit=limit_offset.limit,
            offset=limit_offset.offset,
            page=limit_offset.offset // limit_offset.limit + 1,
            logs=logs,
        )
