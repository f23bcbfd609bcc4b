"""Tests for the retention scheduler."""
import logging
from datetime import timedelta

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from visitlog.config.settings import RetentionSettings, SchedulerSettings, Settings
from visitlog.domain.logs.records import NewVisit
from visitlog.server.scheduler import SweepStats, create_scheduler, retention_sweep_job


class ExplodingStore:
    async def delete_older_than(self, horizon_days: int) -> int:
        raise RuntimeError("database went away")


def cron_fields(trigger: CronTrigger) -> dict[str, str]:
    return {field.name: str(field) for field in trigger.fields}


@pytest.mark.asyncio
async def test_scheduler_registers_daily_and_startup_sweeps(store) -> None:
    settings = Settings(
        scheduler=SchedulerSettings(enabled=True, retention_hour=2, retention_minute=5),
        retention=RetentionSettings(days=30, run_on_startup=True),
    )
    scheduler = create_scheduler(store, settings)

    daily = scheduler.get_job("retention-sweep")
    startup = scheduler.get_job("retention-startup-sweep")

    assert isinstance(daily.trigger, CronTrigger)
    fields = cron_fields(daily.trigger)
    assert fields["hour"] == "2"
    assert fields["minute"] == "5"
    assert daily.args[1] == 30
    assert isinstance(startup.trigger, DateTrigger)


@pytest.mark.asyncio
async def test_scheduler_without_startup_sweep(store) -> None:
    settings = Settings(
        scheduler=SchedulerSettings(enabled=True),
        retention=RetentionSettings(run_on_startup=False),
    )
    scheduler = create_scheduler(store, settings)

    assert [job.id for job in scheduler.get_jobs()] == ["retention-sweep"]


@pytest.mark.asyncio
async def test_disabled_scheduler_has_no_jobs(store) -> None:
    scheduler = create_scheduler(store, Settings(scheduler=SchedulerSettings(enabled=False)))
    assert scheduler.get_jobs() == []


@pytest.mark.asyncio
async def test_sweep_deletes_expired_records(store, clock) -> None:
    start = clock.now
    clock.now = start - timedelta(days=45)
    await store.append(NewVisit(masked_address="x", pseudonym="p", request_path="/"))
    clock.now = start
    await store.append(NewVisit(masked_address="x", pseudonym="p", request_path="/"))

    stats = SweepStats()
    assert await retention_sweep_job(store, 30, stats) == 1
    assert await retention_sweep_job(store, 30, stats) == 0
    assert stats.runs == 2
    assert stats.deleted == 1
    assert stats.failures == 0
    assert stats.last_run is not None
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_failed_sweep_is_logged_and_absorbed(caplog: pytest.LogCaptureFixture) -> None:
    stats = SweepStats()
    with caplog.at_level(logging.ERROR, logger="visitlog.server.scheduler"):
        assert await retention_sweep_job(ExplodingStore(), 30, stats) == 0

    assert stats.failures == 1
    assert "database went away" in caplog.text
