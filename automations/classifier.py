"""
Task due-window classification.

Pure functions of ``(task, now)``. ``now`` must be timezone-aware: its
timezone defines the calendar day used by the due-today window. The scanner
builds its store queries from the same window helpers so the query and the
per-item check can never disagree.
"""

from datetime import datetime, timezone
from typing import Set, Tuple

from constants import NotificationTypes, TaskStatus, REMINDER_LOOKAHEAD
from models.task import TaskModel
from utils.clock import start_of_day, start_of_next_day


def reminder_window(now: datetime) -> Tuple[datetime, datetime]:
    """Inclusive ``[now, now + 60s]`` in real time."""
    return now, now.astimezone(timezone.utc) + REMINDER_LOOKAHEAD


def due_today_window(now: datetime) -> Tuple[datetime, datetime]:
    """Current calendar day, start inclusive, next day start exclusive."""
    return start_of_day(now), start_of_next_day(now)


def is_reminder_due(task: TaskModel, now: datetime) -> bool:
    if task.status == TaskStatus.DONE or task.reminder_date is None:
        return False
    start, end = reminder_window(now)
    return start <= task.reminder_date <= end


def is_due_today(task: TaskModel, now: datetime) -> bool:
    if task.status == TaskStatus.DONE or task.due_date is None:
        return False
    start, end = due_today_window(now)
    return start <= task.due_date < end


def is_overdue(task: TaskModel, now: datetime) -> bool:
    if task.status == TaskStatus.DONE or task.due_date is None:
        return False
    return task.due_date < now


def classify(task: TaskModel, now: datetime) -> Set[str]:
    """Notification types whose window ``task`` falls in at ``now``.

    A task due earlier today is both due-today and overdue; the scanner only
    ever acts on the category it is scanning for.
    """
    categories = set()
    if is_reminder_due(task, now):
        categories.add(NotificationTypes.REMINDER)
    if is_due_today(task, now):
        categories.add(NotificationTypes.TASK_DUE)
    if is_overdue(task, now):
        categories.add(NotificationTypes.TASK_OVERDUE)
    return categories
