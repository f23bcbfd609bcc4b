"""Shared dependency providers for API layer."""
from __future__ import annotations

from litestar import Request
from litestar.params import Parameter
from advanced_alchemy.filters import LimitOffset

from visitlog.services.ingestion import VisitLogService
from visitlog.services.privacy import ConsentGate
from visitlog.services.store import LogStore
from visitlog.server.scheduler import SweepStats


def provide_visit_service(request: Request) -> VisitLogService:
    """Provide the VisitLogService wired at startup."""
    return request.app.state.visit_service


def provide_consent_gate(request: Request) -> ConsentGate:
    """Provide the ConsentGate wired at startup."""
    return request.app.state.consent_gate


def provide_log_store(request: Request) -> LogStore:
    """Provide the LogStore wired at startup."""
    return request.app.state.log_store


def provide_sweep_stats(request: Request) -> SweepStats | None:
    """Provide retention sweep counters, if the scheduler was wired."""
    return getattr(request.app.state, "sweep_stats", None)


def provide_limit_offset_pagination(
    request: Request,
    limit: int | None = Parameter(query="limit", ge=1, default=None, required=False),
    offset: int = Parameter(query="offset", ge=0, default=0, required=False),
    page: int | None = Parameter(query="page", ge=1, default=None, required=False),
) -> LimitOffset:
    """Add offset/limit pagination.

    ``limit`` falls back to the configured default page size and is capped at
    the configured maximum. ``page`` (1-indexed) wins over ``offset`` when both
    are given.

    Parameters
    ----------
    limit : int
        Number of items per page.
    offset : int
        Number of items to skip.
    page : int
        Page number (1-indexed).
    """
    admin_settings = request.app.state.settings.admin
    page_size = min(limit or admin_settings.default_page_size, admin_settings.max_page_size)
    if page is not None:
        offset = page_size * (page - 1)
    return LimitOffset(page_size, offset)
