"""
Notification persistence.

Wraps the ``notifications`` collection with the operations the scanner,
the dispatcher and the HTTP routes need. Datetimes are converted to naive
UTC on the way in and back to aware UTC on the way out.
"""

from datetime import datetime
from typing import List, Optional

from models.notification import NotificationModel
from utils.clock import Clock, get_clock, to_storage, document_to_storage
from logging_config import get_logger

logger = get_logger("notification_repository")


class NotificationRepository:
    def __init__(self, db, clock: Optional[Clock] = None):
        self._collection = db["notifications"]
        self.clock = clock or get_clock()

    async def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        task_id: Optional[str] = None,
        action_url: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> NotificationModel:
        """Insert a notification; ``created_at`` comes from the repository clock."""
        now = self.clock.now()
        notification = NotificationModel(
            user_id=user_id,
            task_id=task_id,
            type=type,
            title=title,
            message=message,
            action_url=action_url,
            metadata=metadata or {},
            created_at=now,
            updated_at=now,
        )
        await self._collection.insert_one(document_to_storage(notification.model_dump()))
        logger.debug(
            "Notification created",
            extra={"data": {"notification_id": notification.id, "type": type, "task_id": task_id}}
        )
        return notification

    async def find_recent(
        self, user_id: str, task_id: Optional[str], type: str, since: datetime
    ) -> Optional[NotificationModel]:
        """Any notification for this (user, task, type) created at or after ``since``."""
        doc = await self._collection.find_one({
            "user_id": user_id,
            "task_id": task_id,
            "type": type,
            "created_at": {"$gte": to_storage(since)},
        })
        return NotificationModel(**doc) if doc else None

    async def list_for_user(
        self, user_id: str, read: Optional[bool] = None, limit: int = 50, skip: int = 0
    ) -> List[NotificationModel]:
        query = {"user_id": user_id}
        if read is not None:
            query["read"] = read

        cursor = self._collection.find(query).sort("created_at", -1).skip(skip).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [NotificationModel(**doc) for doc in docs]

    async def unread_count(self, user_id: str) -> int:
        return await self._collection.count_documents({"user_id": user_id, "read": False})

    async def mark_read(self, notification_ids: List[str], user_id: str) -> int:
        result = await self._collection.update_many(
            {"id": {"$in": notification_ids}, "user_id": user_id},
            {"$set": {"read": True, "updated_at": to_storage(self.clock.now())}}
        )
        return result.modified_count

    async def mark_all_read(self, user_id: str) -> int:
        result = await self._collection.update_many(
            {"user_id": user_id, "read": False},
            {"$set": {"read": True, "updated_at": to_storage(self.clock.now())}}
        )
        return result.modified_count

    async def delete(self, notification_ids: List[str], user_id: str) -> int:
        result = await self._collection.delete_many(
            {"id": {"$in": notification_ids}, "user_id": user_id}
        )
        return result.deleted_count
