"""Read-side queries over the ``tasks`` collection used by the notification scanner."""

from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError

from constants import TaskStatus
from models.task import TaskModel
from utils.clock import to_storage
from logging_config import get_logger

logger = get_logger("task_repository")

NOT_DONE = {"$ne": TaskStatus.DONE}


class TaskRepository:
    def __init__(self, db):
        self._collection = db["tasks"]

    async def get(self, task_id: str) -> Optional[TaskModel]:
        doc = await self._collection.find_one({"id": task_id})
        return TaskModel(**doc) if doc else None

    async def find_with_reminder_between(self, start: datetime, end: datetime) -> List[TaskModel]:
        """Open tasks whose reminder falls in ``[start, end]``."""
        return await self._find({
            "reminder_date": {"$gte": to_storage(start), "$lte": to_storage(end)},
            "status": NOT_DONE,
        })

    async def find_due_between(self, start: datetime, end: datetime) -> List[TaskModel]:
        """Open tasks due in ``[start, end)``."""
        return await self._find({
            "due_date": {"$gte": to_storage(start), "$lt": to_storage(end)},
            "status": NOT_DONE,
        })

    async def find_due_before(self, cutoff: datetime) -> List[TaskModel]:
        """Open tasks due strictly before ``cutoff``, however old."""
        return await self._find({
            "due_date": {"$lt": to_storage(cutoff)},
            "status": NOT_DONE,
        })

    async def _find(self, query: dict) -> List[TaskModel]:
        docs = await self._collection.find(query).to_list(length=None)
        tasks = []
        for doc in docs:
            try:
                tasks.append(TaskModel(**doc))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed task document",
                    extra={"data": {"task_id": doc.get("id"), "error": str(e)}}
                )
        return tasks
