import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

import automations.scheduler as scheduler_module
from automations.scanner import ScanResult
from automations.scheduler import (
    DailySchedule,
    IntervalSchedule,
    NotificationScheduler,
    ScheduledJob,
    init_notification_scheduler,
    seconds_until,
    shutdown_notification_scheduler,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class SoonSchedule:
    """Fires a few milliseconds after every check."""

    def next_run(self, now):
        return now + timedelta(milliseconds=5)


# --- Fire time computation ---

def test_minute_interval_aligns_to_next_minute():
    schedule = IntervalSchedule(timedelta(seconds=60))
    assert schedule.next_run(utc(2024, 1, 15, 12, 0, 30)) == utc(2024, 1, 15, 12, 1)
    assert schedule.next_run(utc(2024, 1, 15, 12, 1)) == utc(2024, 1, 15, 12, 2)


def test_six_hour_interval_fires_on_quarter_days():
    schedule = IntervalSchedule(timedelta(hours=6))
    assert schedule.next_run(utc(2024, 1, 15, 5, 59)) == utc(2024, 1, 15, 6)
    assert schedule.next_run(utc(2024, 1, 15, 12)) == utc(2024, 1, 15, 18)
    assert schedule.next_run(utc(2024, 1, 15, 23)) == utc(2024, 1, 16, 0)


def test_daily_schedule_fires_at_eight():
    schedule = DailySchedule(8)
    assert schedule.next_run(utc(2024, 1, 15, 7)) == utc(2024, 1, 15, 8)
    assert schedule.next_run(utc(2024, 1, 15, 8)) == utc(2024, 1, 16, 8)
    assert schedule.next_run(utc(2024, 1, 15, 9, 30)) == utc(2024, 1, 16, 8)


def test_daily_schedule_uses_local_wall_clock():
    tz = ZoneInfo("Asia/Kolkata")
    now = datetime(2024, 1, 15, 7, 0, tzinfo=tz)
    assert DailySchedule(8).next_run(now) == datetime(2024, 1, 15, 8, 0, tzinfo=tz)


# --- Handle lifecycle ---

async def test_default_jobs(scanner):
    scheduler = NotificationScheduler(scanner)
    assert [job.name for job in scheduler.jobs] == ["reminders", "due-today", "overdue"]


async def test_start_is_idempotent(scanner):
    scheduler = NotificationScheduler(scanner)

    scheduler.start()
    first_tasks = dict(scheduler._tasks)
    scheduler.start()

    assert scheduler._tasks == first_tasks
    assert len(scheduler._tasks) == 3
    assert scheduler.running

    await scheduler.stop()
    assert not scheduler.running
    assert all(task.cancelled() for task in first_tasks.values())


async def test_jobs_fire_on_schedule(scanner):
    run = AsyncMock(return_value=ScanResult(processed=1))
    scheduler = NotificationScheduler(scanner, jobs=[ScheduledJob("soon", SoonSchedule(), run)])

    scheduler.start()
    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert run.await_count >= 1


async def test_failing_job_does_not_stop_others(scanner):
    failing = AsyncMock(side_effect=RuntimeError("store unavailable"))
    healthy = AsyncMock(return_value=ScanResult())
    scheduler = NotificationScheduler(scanner, jobs=[
        ScheduledJob("failing", SoonSchedule(), failing),
        ScheduledJob("healthy", SoonSchedule(), healthy),
    ])

    scheduler.start()
    await asyncio.sleep(0.1)
    assert scheduler.running
    await scheduler.stop()

    # the failing loop keeps ticking after its first error
    assert failing.await_count >= 2
    assert healthy.await_count >= 2


async def test_run_now_bypasses_timers(scanner, insert_task):
    await insert_task(due_date=utc(2024, 1, 15, 6))
    scheduler = NotificationScheduler(scanner)

    results = await scheduler.run_now()

    assert set(results) == {"reminders", "due-today", "overdue"}
    assert results["due-today"].processed == 1
    assert results["overdue"].processed == 1
    assert not scheduler.running


async def test_run_now_single_kind(scanner, insert_task):
    await insert_task(due_date=utc(2024, 1, 15, 6))
    results = await NotificationScheduler(scanner).run_now("overdue")
    assert list(results) == ["overdue"]


async def test_run_now_unknown_kind(scanner):
    with pytest.raises(ValueError):
        await NotificationScheduler(scanner).run_now("weekly")


# --- Process-wide init ---

async def test_init_disabled_registers_nothing(monkeypatch, scanner):
    monkeypatch.setattr(scheduler_module, "_scheduler", None)
    assert init_notification_scheduler(False) is None
    assert scheduler_module._scheduler is None


async def test_init_twice_returns_same_handle(monkeypatch, scanner):
    monkeypatch.setattr(scheduler_module, "_scheduler", None)
    monkeypatch.setattr(scheduler_module, "get_scanner", lambda: scanner)

    first = init_notification_scheduler(True)
    first_tasks = dict(first._tasks)
    second = init_notification_scheduler(True)

    assert first is second
    assert second._tasks == first_tasks
    assert len(first_tasks) == 3

    await shutdown_notification_scheduler()
    assert not first.running
    assert scheduler_module._scheduler is None


# --- Daylight saving ---

NEW_YORK = ZoneInfo("America/New_York")


def test_daily_run_waits_real_hours_on_spring_forward():
    # 01:00 EST -> 08:00 EDT is six real hours
    now = datetime(2024, 3, 10, 1, 0, tzinfo=NEW_YORK)
    assert DailySchedule(8).next_run(now) == datetime(2024, 3, 10, 8, 0, tzinfo=NEW_YORK)
    assert seconds_until(DailySchedule(8), now) == 6 * 3600


def test_daily_run_waits_real_hours_on_fall_back():
    now = datetime(2024, 11, 3, 0, 0, tzinfo=NEW_YORK)
    assert seconds_until(DailySchedule(8), now) == 9 * 3600


def test_six_hour_interval_on_spring_forward():
    now = datetime(2024, 3, 10, 0, 0, tzinfo=NEW_YORK)
    schedule = IntervalSchedule(timedelta(hours=6))
    assert schedule.next_run(now) == datetime(2024, 3, 10, 6, 0, tzinfo=NEW_YORK)
    assert seconds_until(schedule, now) == 5 * 3600


def test_minute_interval_keeps_ticking_through_repeated_hour():
    schedule = IntervalSchedule(timedelta(seconds=60))

    # last EDT minute before clocks fall back to 01:00 EST
    assert seconds_until(schedule, datetime(2024, 11, 3, 1, 59, 30, tzinfo=NEW_YORK)) == 30
    # inside the repeated hour
    assert seconds_until(schedule, datetime(2024, 11, 3, 1, 0, 30, tzinfo=NEW_YORK, fold=1)) == 30


def test_minute_interval_across_spring_forward_gap():
    schedule = IntervalSchedule(timedelta(seconds=60))
    assert seconds_until(schedule, datetime(2024, 3, 10, 1, 59, 30, tzinfo=NEW_YORK)) == 30
