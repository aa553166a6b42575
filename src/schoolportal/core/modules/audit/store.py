from typing import Any, Protocol

from pymongo.asynchronous.database import AsyncDatabase

from schoolportal.core.modules.audit.models import AuditEntry


class AuditStore(Protocol):
    async def create_indexes(self) -> None: ...

    async def insert(self, entry: AuditEntry) -> None: ...


class MongoAuditStore:
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("audit_logs")

    async def create_indexes(self) -> None:
        await self._collection.create_index([("user_id", 1)])
        await self._collection.create_index([("created_at", 1)])

    async def insert(self, entry: AuditEntry) -> None:
        await self._collection.insert_one(entry.to_mongo())
