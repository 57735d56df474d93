from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal, List
from datetime import datetime, timezone
import uuid

from utils.clock import from_storage

NotificationType = Literal[
    'reminder', 'task_due', 'task_overdue',
    'shared_list', 'list_shared', 'comment', 'mention', 'message', 'system'
]


class NotificationModel(BaseModel):
    """In-app notification for reminders, due dates and collaboration events."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str  # Who receives the notification
    task_id: Optional[str] = None
    type: NotificationType

    # Content
    title: str = Field(max_length=200)
    message: str = Field(max_length=500)
    action_url: Optional[str] = None

    # Context
    metadata: dict = Field(default_factory=dict)  # task_title, priority, due_date, list_name...

    # State
    read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("title", "message")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("created_at", "updated_at")
    @classmethod
    def _aware_datetimes(cls, value: datetime) -> datetime:
        return from_storage(value)


class NotificationIdsRequest(BaseModel):
    notification_ids: Optional[List[str]] = None


class DevNotificationRequest(BaseModel):
    title: Optional[str] = None
    message: Optional[str] = None
    type: NotificationType = 'system'


class ProcessNotificationsRequest(BaseModel):
    kind: str = 'all'
