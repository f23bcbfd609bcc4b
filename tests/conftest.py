import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker

from visitlog.config.settings import DatabaseSettings
from visitlog.domain.logs.models import VisitLog
from visitlog.server.plugins import create_engine
from visitlog.services.store import LogStore


@pytest.fixture(scope="session", autouse=True)
def baseline_settings_env():
    """Provide baseline env vars so tests are not affected by local .env.

    Pydantic-settings precedence: init args > env vars > .env > defaults.
    Setting these ensures stable defaults regardless of any .env present.
    """
    os.environ.update({
        # App
        "APP_NAME": "VisitLog API",
        "APP_VERSION": "0.1.0",
        "APP_DEBUG": "false",
        "APP_ENVIRONMENT": "development",
        # API
        "API_HOST": "0.0.0.0",
        "API_PORT": "3001",
        "API_WORKERS": "1",
        "API_RELOAD": "false",
        "API_LOG_LEVEL": "INFO",
        # Database
        "DB_URL": "sqlite+aiosqlite:///./visitlog-test.db",
        "DB_ECHO": "false",
        "DB_DROP_ON_STARTUP": "false",
        # Privacy
        "PRIVACY_SECRET_KEY": "test-secret-key",
        # Geo
        "GEOIP_PROVIDER": "disabled",
        # Retention
        "RETENTION_DAYS": "30",
    })


@pytest.fixture(autouse=True)
def refresh_settings_cache():
    """Clear settings cache so env changes take effect per test.

    Ensures tests using monkeypatch.setenv() get a fresh Settings instance.
    """
    from visitlog.config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeClock:
    """Settable clock for store timestamps and retention cutoffs."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'visitlog.db'}"


@pytest_asyncio.fixture
async def session_factory(sqlite_url: str):
    """Session factory bound to a fresh SQLite database with the schema created."""
    engine = create_engine(DatabaseSettings(url=sqlite_url))
    async with engine.begin() as conn:
        await conn.run_sync(VisitLog.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_factory, clock: FakeClock) -> LogStore:
    return LogStore(session_factory, clock=clock)
