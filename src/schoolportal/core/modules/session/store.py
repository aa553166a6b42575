from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from schoolportal.core.modules.session.models import Session


class SessionStore(Protocol):
    async def create_indexes(self) -> None: ...

    async def insert(self, session: Session) -> None: ...

    async def get_by_token(self, token: str) -> Session | None: ...

    async def delete_by_token(self, token: str) -> bool:
        """Delete the session; True when a record was removed."""
        ...

    async def list_active(self, user_id: UUID, at: datetime) -> list[Session]: ...

    async def delete_for_user(
        self, user_id: UUID, exclude_id: UUID | None = None, session_ids: list[UUID] | None = None
    ) -> int:
        """Delete the user's sessions except exclude_id, restricted to session_ids when given."""
        ...


class MongoSessionStore:
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("sessions")

    async def create_indexes(self) -> None:
        # Unique index for token (for authentication lookups)
        await self._collection.create_index([("token", 1)], unique=True)
        # Single index for user_id (for finding sessions by user)
        await self._collection.create_index([("user_id", 1)])
        # TTL index removes sessions once expires_at has passed
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    async def insert(self, session: Session) -> None:
        await self._collection.insert_one(session.to_mongo())

    async def get_by_token(self, token: str) -> Session | None:
        return Session.from_mongo(await self._collection.find_one({"token": token}))

    async def delete_by_token(self, token: str) -> bool:
        result = await self._collection.delete_one({"token": token})
        return result.deleted_count > 0

    async def list_active(self, user_id: UUID, at: datetime) -> list[Session]:
        cursor = self._collection.find({"user_id": user_id, "expires_at": {"$gt": at}}).sort("created_at", -1)
        return await Session.list_cursor(cursor)

    async def delete_for_user(
        self, user_id: UUID, exclude_id: UUID | None = None, session_ids: list[UUID] | None = None
    ) -> int:
        id_filter: dict[str, Any] = {}
        if exclude_id is not None:
            id_filter["$ne"] = exclude_id
        if session_ids is not None:
            id_filter["$in"] = session_ids
        query: dict[str, Any] = {"user_id": user_id}
        if id_filter:
            query["_id"] = id_filter
        result = await self._collection.delete_many(query)
        return result.deleted_count
