from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal, List
from datetime import datetime, timezone
import uuid

from utils.clock import from_storage


class TaskModel(BaseModel):
    # Core Fields
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)

    # Relations
    user_id: str  # Owner
    list_id: Optional[str] = None

    # State
    status: Literal['todo', 'in-progress', 'done'] = 'todo'
    priority: Literal['low', 'medium', 'high', 'urgent'] = 'medium'
    tags: List[str] = Field(default_factory=list)

    # Timing
    due_date: Optional[datetime] = None
    reminder_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore"
    )

    @field_validator("due_date", "reminder_date", "completed_at", "created_at", "updated_at")
    @classmethod
    def _aware_datetimes(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Mongo hands back naive UTC
        return from_storage(value)
