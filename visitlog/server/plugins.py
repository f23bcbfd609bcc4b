"""Plugin and infrastructure configuration.

This module builds, from settings:
- the SQLAlchemy async engine and Litestar SQLAlchemy plugin configuration
- the Litestar logging configuration
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from litestar.logging import LoggingConfig
from litestar.serialization import decode_json, encode_json
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyInitPlugin,
)

from visitlog.domain.logs.models import VisitLog

if TYPE_CHECKING:
    from visitlog.config.settings import DatabaseSettings, Settings


def create_engine(settings: "DatabaseSettings") -> AsyncEngine:
    """Create the async engine with connection pooling where the driver supports it."""
    options: dict[str, Any] = {
        "echo": settings.echo,
        "echo_pool": settings.echo_pool,
        "json_serializer": encode_json,
        "json_deserializer": decode_json,
    }
    if settings.is_sqlite:
        # SQLite serializes writers itself; wait for the lock instead of failing fast.
        options["connect_args"] = {"timeout": 30}
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,
            pool_pre_ping=True,
            pool_use_lifo=True,  # use lifo to reduce the number of idle connections
        )
        if settings.pool_disabled:
            for key in ("pool_size", "max_overflow", "pool_timeout", "pool_use_lifo"):
                options.pop(key)
            options["poolclass"] = NullPool
    return create_async_engine(url=settings.dsn, **options)


def create_sqlalchemy_config(settings: "DatabaseSettings") -> SQLAlchemyAsyncConfig:
    """SQLAlchemy configuration for Litestar."""
    return SQLAlchemyAsyncConfig(
        engine_instance=create_engine(settings),
        session_config=AsyncSessionConfig(expire_on_commit=False),
        create_all=False,
        metadata=VisitLog.metadata,
    )


def create_sqlalchemy_plugin(config: SQLAlchemyAsyncConfig) -> SQLAlchemyInitPlugin:
    return SQLAlchemyInitPlugin(config=config)


def create_logging_config(settings: "Settings") -> LoggingConfig:
    """Logging configuration."""
    return LoggingConfig(
        root={"level": settings.api.log_level, "handlers": ["queue_listener"]},
        formatters={
            "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"}
        },
        log_exceptions="always",
    )
