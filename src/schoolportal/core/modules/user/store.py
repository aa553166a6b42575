from typing import Any, Protocol
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from schoolportal.core.modules.user.models import User


class UserStore(Protocol):
    async def create_indexes(self) -> None: ...

    async def insert(self, user: User) -> None: ...

    async def get(self, user_id: UUID) -> User | None: ...

    async def list_all(self) -> list[User]: ...

    async def update_password(self, user_id: UUID, password_hash: str) -> None: ...


class MongoUserStore:
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("users")

    async def create_indexes(self) -> None:
        await self._collection.create_index([("username", 1)], unique=True)
        await self._collection.create_index([("user_type", 1)])
        await self._collection.create_index([("email", 1)], sparse=True)

    async def insert(self, user: User) -> None:
        await self._collection.insert_one(user.to_mongo())

    async def get(self, user_id: UUID) -> User | None:
        return User.from_mongo(await self._collection.find_one({"_id": user_id}))

    async def list_all(self) -> list[User]:
        return await User.list_cursor(self._collection.find())

    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        await self._collection.update_one({"_id": user_id}, {"$set": {"password_hash": password_hash}})
