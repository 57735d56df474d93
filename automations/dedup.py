"""
Check-before-create deduplication for scheduled notifications.

The check is advisory: two scans racing on the same task can both pass it.
That is acceptable while a single scheduler process runs the scans.
"""

from datetime import datetime, timezone
from typing import Optional

from constants import NotificationTypes, OVERDUE_LOOKBACK
from repositories.notifications import NotificationRepository
from utils.clock import start_of_day
from logging_config import get_logger

logger = get_logger("dedup")


class DedupPolicy:
    def __init__(self, notifications: NotificationRepository):
        self.notifications = notifications

    def lookback_start(self, notification_type: str, now: datetime) -> Optional[datetime]:
        """Start of the window searched for a prior notification, or None when the type is not deduplicated."""
        if notification_type == NotificationTypes.TASK_DUE:
            return start_of_day(now)
        if notification_type == NotificationTypes.TASK_OVERDUE:
            return now.astimezone(timezone.utc) - OVERDUE_LOOKBACK
        # Reminders fire on every matching tick (at-least-once).
        return None

    async def should_notify(self, user_id: str, task_id: str, notification_type: str, now: datetime) -> bool:
        since = self.lookback_start(notification_type, now)
        if since is None:
            return True

        existing = await self.notifications.find_recent(user_id, task_id, notification_type, since)
        if existing:
            logger.debug(
                "Already notified, skipping",
                extra={"data": {"task_id": task_id, "type": notification_type, "notification_id": existing.id}}
            )
            return False
        return True
