"""
Creates the in-app notification for a task that qualified in a scan, and
sends the reminder email when the notification is a reminder.
"""

from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool

from constants import NotificationTypes, TaskStatus
from models.notification import NotificationModel
from models.task import TaskModel
from repositories.notifications import NotificationRepository
from repositories.tasks import TaskRepository
from repositories.users import UserRepository
from utils.email import send_task_reminder_email
from logging_config import get_logger

logger = get_logger("dispatcher")

MESSAGE_MAX_LENGTH = 500

# type -> (title, message template)
TEMPLATES = {
    NotificationTypes.REMINDER: ("Task Reminder", "Reminder: {title}"),
    NotificationTypes.TASK_DUE: ("Task Due Today", '"{title}" is due today'),
    NotificationTypes.TASK_OVERDUE: ("Task Overdue", '"{title}" is overdue'),
}


def render_message(notification_type: str, task: TaskModel) -> tuple:
    title, template = TEMPLATES[notification_type]
    room = MESSAGE_MAX_LENGTH - len(template.format(title=""))
    task_title = task.title if len(task.title) <= room else task.title[:room - 3] + "..."
    return title, template.format(title=task_title)


class NotificationDispatcher:
    def __init__(
        self,
        tasks: TaskRepository,
        notifications: NotificationRepository,
        users: UserRepository,
        email_sender: Callable = send_task_reminder_email,
    ):
        self.tasks = tasks
        self.notifications = notifications
        self.users = users
        self.email_sender = email_sender

    async def dispatch(self, task_id: str, notification_type: str) -> Optional[NotificationModel]:
        """
        Notify the owner of ``task_id``. Returns None without side effects when the
        task vanished or was completed since the scan query ran.
        """
        task = await self.tasks.get(task_id)
        if task is None:
            logger.info("Task no longer exists, nothing to notify", extra={"data": {"task_id": task_id}})
            return None
        if task.status == TaskStatus.DONE:
            logger.info("Task completed since scan, nothing to notify", extra={"data": {"task_id": task_id}})
            return None

        title, message = render_message(notification_type, task)
        notification = await self.notifications.create(
            user_id=task.user_id,
            task_id=task.id,
            type=notification_type,
            title=title,
            message=message,
            action_url=f"/dashboard?task={task.id}",
            metadata={
                "task_title": task.title,
                "priority": task.priority,
                "due_date": task.due_date.isoformat() if task.due_date else None,
            },
        )

        if notification_type == NotificationTypes.REMINDER:
            await self._send_reminder_email(task)

        return notification

    async def _send_reminder_email(self, task: TaskModel):
        # Email problems never undo or fail the in-app notification
        try:
            user = await self.users.get(task.user_id)
            if user is None:
                logger.warning("Owner not found for reminder email", extra={"data": {"task_id": task.id, "user_id": task.user_id}})
                return
            await run_in_threadpool(self.email_sender, user.email, user.name, task, tz=self.notifications.clock.tz)
        except Exception as e:
            logger.error(f"Error sending task reminder email: {e}", exc_info=True, extra={"data": {"task_id": task.id}})
