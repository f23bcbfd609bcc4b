"""Stats API endpoint for pipeline statistics."""
from __future__ import annotations

from typing import Any

from litestar import get
from litestar.di import Provide

from visitlog.services.ingestion import VisitLogService
from visitlog.server.scheduler import SweepStats
from visitlog.api.dependencies import provide_sweep_stats


@get("/stats", dependencies={"sweep_stats": Provide(provide_sweep_stats, sync_to_thread=False)})
async def stats(visit_service: VisitLogService, sweep_stats: SweepStats | None) -> dict[str, Any]:
    """Get visit logging, geo enrichment and retention statistics."""
    geo = visit_service.geo_enricher
    return {
        "total_recorded": visit_service.total_recorded,
        "total_failed": visit_service.total_failed,
        "total_consented": visit_service.total_consented,
        "geo_enabled": geo.enabled,
        "geo_lookups": geo.lookups,
        "geo_hits": geo.hits,
        "geo_misses": geo.misses,
        "geo_timeouts": geo.timeouts,
        "geo_errors": geo.errors,
        "retention_runs": sweep_stats.runs if sweep_stats else 0,
        "retention_failures": sweep_stats.failures if sweep_stats else 0,
        "retention_deleted": sweep_stats.deleted if sweep_stats else 0,
    }
