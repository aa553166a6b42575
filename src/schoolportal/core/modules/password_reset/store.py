from typing import Any, Protocol
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from schoolportal.core.modules.password_reset.models import PasswordReset


class PasswordResetStore(Protocol):
    async def create_indexes(self) -> None: ...

    async def put(self, reset: PasswordReset) -> None:
        """Insert the reset or overwrite the record with the same id."""
        ...

    async def get_for_user(self, user_id: UUID) -> PasswordReset | None: ...

    async def delete_for_user(self, user_id: UUID) -> None: ...


class MongoPasswordResetStore:
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("password_resets")

    async def create_indexes(self) -> None:
        await self._collection.create_index([("user_id", 1)], unique=True)
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def put(self, reset: PasswordReset) -> None:
        await self._collection.replace_one({"_id": reset.id}, reset.to_mongo(), upsert=True)

    async def get_for_user(self, user_id: UUID) -> PasswordReset | None:
        return PasswordReset.from_mongo(await self._collection.find_one({"user_id": user_id}))

    async def delete_for_user(self, user_id: UUID) -> None:
        await self._collection.delete_many({"user_id": user_id})
