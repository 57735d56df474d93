from typing import Optional

from models.user import UserModel


class UserRepository:
    def __init__(self, db):
        self._collection = db["users"]

    async def get(self, user_id: str) -> Optional[UserModel]:
        doc = await self._collection.find_one({"id": user_id})
        return UserModel(**doc) if doc else None
