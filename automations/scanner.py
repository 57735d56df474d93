"""
Due-item scanner.

Each scan queries the task store for one window, then handles the matches
one at a time: classify, check for a prior notification, dispatch. A failing
item is logged and counted in ``errors``; the rest of the scan continues.
A failing range query is not caught here and propagates to the caller.
"""

from datetime import datetime
from typing import Callable, List, Optional

from pydantic import BaseModel

from automations.classifier import classify, reminder_window, due_today_window
from automations.dedup import DedupPolicy
from automations.dispatcher import NotificationDispatcher
from constants import NotificationTypes
from models.task import TaskModel
from repositories.notifications import NotificationRepository
from repositories.tasks import TaskRepository
from repositories.users import UserRepository
from utils.clock import Clock, get_clock
from utils.email import send_task_reminder_email
from logging_config import get_logger

logger = get_logger("scanner")


class ScanResult(BaseModel):
    processed: int = 0  # notifications actually created
    errors: int = 0


class DueItemScanner:
    def __init__(self, db, clock: Optional[Clock] = None, email_sender: Callable = send_task_reminder_email):
        self.clock = clock or get_clock()
        self.tasks = TaskRepository(db)
        self.notifications = NotificationRepository(db, self.clock)
        self.dedup = DedupPolicy(self.notifications)
        self.dispatcher = NotificationDispatcher(
            self.tasks, self.notifications, UserRepository(db), email_sender=email_sender
        )

    async def scan_reminders(self) -> ScanResult:
        now = self.clock.now()
        start, end = reminder_window(now)
        tasks = await self.tasks.find_with_reminder_between(start, end)
        return await self._process(tasks, NotificationTypes.REMINDER, now)

    async def scan_due_today(self) -> ScanResult:
        now = self.clock.now()
        start, end = due_today_window(now)
        tasks = await self.tasks.find_due_between(start, end)
        return await self._process(tasks, NotificationTypes.TASK_DUE, now)

    async def scan_overdue(self) -> ScanResult:
        now = self.clock.now()
        tasks = await self.tasks.find_due_before(now)
        return await self._process(tasks, NotificationTypes.TASK_OVERDUE, now)

    async def _process(self, tasks: List[TaskModel], notification_type: str, now: datetime) -> ScanResult:
        result = ScanResult()
        for task in tasks:
            if notification_type not in classify(task, now):
                continue
            try:
                if not await self.dedup.should_notify(task.user_id, task.id, notification_type, now):
                    continue
                if await self.dispatcher.dispatch(task.id, notification_type):
                    result.processed += 1
            except Exception as e:
                logger.error(
                    f"Error processing {notification_type} for task {task.id}: {e}",
                    exc_info=True,
                    extra={"data": {"task_id": task.id, "type": notification_type}}
                )
                result.errors += 1

        logger.info(
            f"Scan finished: {notification_type}",
            extra={"data": {"matched": len(tasks), "processed": result.processed, "errors": result.errors}}
        )
        return result


_default_scanner: Optional[DueItemScanner] = None


def get_scanner() -> DueItemScanner:
    """Process-wide scanner bound to the configured database and clock."""
    global _default_scanner
    if _default_scanner is None:
        from database import db
        _default_scanner = DueItemScanner(db)
    return _default_scanner


async def scan_reminders() -> ScanResult:
    return await get_scanner().scan_reminders()


async def scan_due_today() -> ScanResult:
    return await get_scanner().scan_due_today()


async def scan_overdue() -> ScanResult:
    return await get_scanner().scan_overdue()
