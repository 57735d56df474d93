"""
Periodic driver for the notification scans.

``NotificationScheduler`` owns one asyncio task per job:
  - every minute: reminders due within the next minute
  - daily at 08:00: tasks due today
  - every 6 hours (00/06/12/18): overdue tasks

Each loop awaits its scan before computing the next fire time, so a job
never overlaps itself; a fire time missed by a long scan is skipped. Every
tick catches and logs its own errors so one job cannot stop the others.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Awaitable, Callable, Dict, List, Optional

from automations.scanner import DueItemScanner, ScanResult, get_scanner
from constants import (
    ScanKinds,
    REMINDER_SCAN_INTERVAL,
    DUE_TODAY_SCAN_HOUR,
    DUE_TODAY_SCAN_MINUTE,
    OVERDUE_SCAN_INTERVAL,
)
from utils.clock import start_of_day
from logging_config import get_logger, job_var

logger = get_logger("scheduler")


class IntervalSchedule:
    """Fires on multiples of ``interval`` counted from local midnight (cron ``*/n`` style)."""

    def __init__(self, interval: timedelta):
        self.interval = interval

    def next_run(self, now: datetime) -> datetime:
        midnight = start_of_day(now)
        elapsed = now - midnight  # wall-clock
        aligned = (midnight + (elapsed // self.interval + 1) * self.interval).replace(fold=now.fold)
        # Across a DST shift the aligned wall time can sit an hour away; never wait longer than one interval
        remaining = self.interval - elapsed % self.interval
        stepped = (now.astimezone(timezone.utc) + remaining).astimezone(now.tzinfo)
        return min(aligned, stepped, key=lambda candidate: candidate.timestamp())


class DailySchedule:
    """Fires once a day at a fixed local wall-clock time."""

    def __init__(self, hour: int, minute: int = 0):
        self.at = time(hour, minute)

    def next_run(self, now: datetime) -> datetime:
        candidate = datetime.combine(now.date(), self.at, tzinfo=now.tzinfo)
        if candidate <= now:
            candidate = datetime.combine(now.date() + timedelta(days=1), self.at, tzinfo=now.tzinfo)
        return candidate


def seconds_until(schedule, now: datetime) -> float:
    """Real seconds from ``now`` to the schedule's next fire time."""
    return schedule.next_run(now).timestamp() - now.timestamp()


@dataclass
class ScheduledJob:
    name: str
    schedule: object  # anything with next_run(now) -> datetime
    run: Callable[[], Awaitable[ScanResult]]


class NotificationScheduler:
    def __init__(self, scanner: DueItemScanner, jobs: Optional[List[ScheduledJob]] = None):
        self.scanner = scanner
        self.clock = scanner.clock
        self.jobs = jobs if jobs is not None else [
            ScheduledJob(ScanKinds.REMINDERS, IntervalSchedule(REMINDER_SCAN_INTERVAL), scanner.scan_reminders),
            ScheduledJob(ScanKinds.DUE_TODAY, DailySchedule(DUE_TODAY_SCAN_HOUR, DUE_TODAY_SCAN_MINUTE), scanner.scan_due_today),
            ScheduledJob(ScanKinds.OVERDUE, IntervalSchedule(OVERDUE_SCAN_INTERVAL), scanner.scan_overdue),
        ]
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks.values())

    def start(self) -> "NotificationScheduler":
        """Register the job loops on the running event loop. Calling it again is a no-op."""
        if self.running:
            logger.warning("Notification scheduler already running, ignoring start()")
            return self

        self._tasks = {
            job.name: asyncio.create_task(self._loop(job), name=f"notifications:{job.name}")
            for job in self.jobs
        }
        logger.info("Notification scheduler started", extra={"data": {"jobs": list(self._tasks)}})
        return self

    async def stop(self):
        """Cancel every job loop and wait for them to finish."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = {}
        logger.info("Notification scheduler stopped")

    async def run_now(self, kind: str = ScanKinds.ALL) -> Dict[str, ScanResult]:
        """Run scans immediately, bypassing the timers. Errors propagate to the caller."""
        jobs = [job for job in self.jobs if kind == ScanKinds.ALL or job.name == kind]
        if not jobs:
            raise ValueError(f"Unknown scan kind: {kind}")

        results = {}
        for job in jobs:
            results[job.name] = await job.run()
        return results

    async def _loop(self, job: ScheduledJob):
        while True:
            now = self.clock.now()
            delay = seconds_until(job.schedule, now)
            await asyncio.sleep(max(delay, 0))
            await self._tick(job)

    async def _tick(self, job: ScheduledJob) -> Optional[ScanResult]:
        token = job_var.set(job.name)
        try:
            return await job.run()
        except Exception as e:
            logger.error(f"Error running {job.name} scan: {e}", exc_info=True)
            return None
        finally:
            job_var.reset(token)


_scheduler: Optional[NotificationScheduler] = None


def init_notification_scheduler(enabled: bool) -> Optional[NotificationScheduler]:
    """
    Create the process-wide scheduler once and start it when ``enabled``.
    Repeated calls return the existing handle without registering more timers.
    """
    global _scheduler
    if not enabled:
        logger.info("Notification scheduler is disabled via NOTIFICATIONS_SCHEDULER_ENABLED=false")
        return None

    if _scheduler is None:
        _scheduler = NotificationScheduler(get_scanner())
    return _scheduler.start()


def get_notification_scheduler() -> NotificationScheduler:
    """Scheduler handle for on-demand runs; built (but not started) if init never ran."""
    global _scheduler
    if _scheduler is None:
        _scheduler = NotificationScheduler(get_scanner())
    return _scheduler


async def shutdown_notification_scheduler():
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
