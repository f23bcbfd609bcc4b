"""Application lifecycle hooks for startup and shutdown."""

from __future__ import annotations

import logging
import asyncio
from typing import TYPE_CHECKING, Callable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from advanced_alchemy.extensions.litestar import SQLAlchemyAsyncConfig

from visitlog.config.settings import Settings
from visitlog.domain.logs.models import VisitLog
from visitlog.services.geo.enricher import GeoEnricher, create_geo_enricher
from visitlog.services.ingestion import VisitLogService
from visitlog.services.privacy import ConsentGate, Pseudonymizer
from visitlog.services.store import LogStore
from visitlog.server.scheduler import SweepStats, create_scheduler

if TYPE_CHECKING:
    from litestar import Litestar

logger = logging.getLogger(__name__)


async def _db_available(config: SQLAlchemyAsyncConfig, timeout: float = 10.0) -> bool:
    """Return True if the database accepts connections; False otherwise."""
    try:
        async def _probe():
            async with config.get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))

        await asyncio.wait_for(_probe(), timeout=timeout)
        return True
    except Exception as e:
        logger.warning("Database unavailable at startup: %s", e)
        return False


async def on_startup(app: "Litestar") -> None:
    """Wire the visit logging pipeline, create the schema and start the scheduler.

    - The pipeline is always wired so the API can answer; writes against an
      unreachable database come back as failure acknowledgments.
    - If the DB is unavailable, schema creation and the retention scheduler are
      skipped (degraded mode) instead of failing app startup.
    """
    settings: Settings = app.state.settings
    sqlalchemy_config: SQLAlchemyAsyncConfig = app.state.sqlalchemy_config

    secret_key = settings.privacy.secret_key
    pseudonymizer = Pseudonymizer(secret_key.get_secret_value() if secret_key else None)
    consent_gate = ConsentGate(
        cookie_name=settings.privacy.consent_cookie_name,
        max_age_days=settings.privacy.consent_max_age_days,
    )
    geo_enricher: GeoEnricher = create_geo_enricher(settings.geoip)

    session_maker: Callable[[], AsyncSession] = sqlalchemy_config.create_session_maker()
    log_store = LogStore(session_maker, max_page_size=settings.admin.max_page_size)

    visit_service = VisitLogService(
        store=log_store,
        pseudonymizer=pseudonymizer,
        consent_gate=consent_gate,
        geo_enricher=geo_enricher,
        forwarded_header=settings.privacy.forwarded_header,
    )

    if settings.admin.uses_default_credentials:
        logger.warning("Admin viewer uses the default credentials; set ADMIN_USER / ADMIN_PASS.")

    # Store in app state for shutdown and API access
    app.state.visit_service = visit_service
    app.state.log_store = log_store
    app.state.consent_gate = consent_gate
    app.state.geo_enricher = geo_enricher
    app.state.sweep_stats = SweepStats()

    if not await _db_available(sqlalchemy_config):
        logger.warning("Starting without database: skipping schema creation and retention sweeps.")
        return

    async with sqlalchemy_config.get_engine().begin() as conn:
        if settings.database.drop_on_startup:
            logger.warning("Dropping all tables on startup as per configuration.")
            await conn.run_sync(VisitLog.metadata.drop_all)
        await conn.run_sync(VisitLog.metadata.create_all)

    # Create and start scheduler
    scheduler: AsyncIOScheduler = create_scheduler(log_store, settings, app.state.sweep_stats)
    scheduler.start()
    logger.info("Started APScheduler")
    app.state.scheduler = scheduler


async def on_shutdown(app: "Litestar") -> None:
    """Gracefully stop background services and clean up resources."""
    scheduler: AsyncIOScheduler | None = getattr(app.state, "scheduler", None)
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Stopped APScheduler")

    geo_enricher: GeoEnricher | None = getattr(app.state, "geo_enricher", None)
    if geo_enricher:
        await geo_enricher.close()
        logger.info("Closed geo provider")
