import re
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from pymongo.asynchronous.database import AsyncDatabase

from schoolportal.core.modules.message.models import Message, MessageDraft, MessageFilter


class MessageStore(Protocol):
    async def create_indexes(self) -> None: ...

    async def insert(self, message: Message) -> None: ...

    async def find_visible(self, message_id: UUID, user_id: UUID) -> Message | None:
        """Find a message the user sent or received and has not deleted."""
        ...

    async def list_visible(self, user_id: UUID, filters: MessageFilter, limit: int, offset: int) -> list[Message]:
        """List the user's messages, newest first."""
        ...

    async def count_visible(self, user_id: UUID, filters: MessageFilter) -> int: ...

    async def search_visible(self, user_id: UUID, text: str, limit: int) -> list[Message]: ...

    async def mark_read(self, message_id: UUID, user_id: UUID, at: datetime) -> bool:
        """Set read_at on the user's unread recipient entry; True when it changed."""
        ...

    async def mark_deleted_for(self, message_id: UUID, user_id: UUID, at: datetime) -> None: ...

    async def delete(self, message_id: UUID) -> None: ...

    async def list_replies(self, parent_id: UUID, user_id: UUID) -> list[Message]:
        """List replies to a message that the user can see, oldest first."""
        ...

    async def count_unread(self, user_id: UUID) -> int: ...

    async def get_draft(self, user_id: UUID) -> MessageDraft | None: ...

    async def save_draft(self, draft: MessageDraft) -> None:
        """Insert or replace the user's draft. A replacement must reuse the stored draft's id."""
        ...

    async def delete_draft(self, user_id: UUID) -> bool: ...


def visibility_filter(user_id: UUID) -> dict[str, Any]:
    return {
        "$or": [
            {"sender_id": user_id},
            {"recipients": {"$elemMatch": {"user_id": user_id, "deleted_at": None}}},
        ]
    }


def unread_recipient_filter(user_id: UUID) -> dict[str, Any]:
    """Match messages where the user is a recipient who has neither read nor deleted it."""
    return {"recipients": {"$elemMatch": {"user_id": user_id, "read_at": None, "deleted_at": None}}}


def build_list_filter(user_id: UUID, filters: MessageFilter) -> dict[str, Any]:
    if filters.unread_only:
        # Only received messages can be unread
        mongo_filter = unread_recipient_filter(user_id)
    else:
        mongo_filter = visibility_filter(user_id)
    if filters.message_type is not None:
        mongo_filter["message_type"] = filters.message_type
    if filters.priority is not None:
        mongo_filter["priority"] = filters.priority
    return mongo_filter


class MongoMessageStore:
    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._collection = database.get_collection("messages")
        self._drafts = database.get_collection("message_drafts")

    async def create_indexes(self) -> None:
        await self._collection.create_index([("sender_id", 1)])
        await self._collection.create_index([("recipients.user_id", 1)])
        await self._collection.create_index([("created_at", -1)])
        await self._collection.create_index([("parent_id", 1)])
        await self._drafts.create_index([("user_id", 1)], unique=True)

    async def insert(self, message: Message) -> None:
        await self._collection.insert_one(message.to_mongo())

    async def find_visible(self, message_id: UUID, user_id: UUID) -> Message | None:
        document = await self._collection.find_one({"_id": message_id, **visibility_filter(user_id)})
        return Message.from_mongo(document)

    async def list_visible(self, user_id: UUID, filters: MessageFilter, limit: int, offset: int) -> list[Message]:
        cursor = self._collection.find(build_list_filter(user_id, filters)).sort("created_at", -1).skip(offset).limit(limit)
        return await Message.list_cursor(cursor)

    async def count_visible(self, user_id: UUID, filters: MessageFilter) -> int:
        return await self._collection.count_documents(build_list_filter(user_id, filters))

    async def search_visible(self, user_id: UUID, text: str, limit: int) -> list[Message]:
        pattern = {"$regex": re.escape(text), "$options": "i"}
        mongo_filter = {
            "$and": [
                visibility_filter(user_id),
                {"$or": [{"content": pattern}, {"subject": pattern}, {"sender_name": pattern}]},
            ]
        }
        cursor = self._collection.find(mongo_filter).sort("created_at", -1).limit(limit)
        return await Message.list_cursor(cursor)

    async def mark_read(self, message_id: UUID, user_id: UUID, at: datetime) -> bool:
        result = await self._collection.update_one(
            {"_id": message_id, **unread_recipient_filter(user_id)},
            {"$set": {"recipients.$.read_at": at}},
        )
        return result.modified_count > 0

    async def mark_deleted_for(self, message_id: UUID, user_id: UUID, at: datetime) -> None:
        await self._collection.update_one(
            {"_id": message_id, "recipients": {"$elemMatch": {"user_id": user_id, "deleted_at": None}}},
            {"$set": {"recipients.$.deleted_at": at}},
        )

    async def delete(self, message_id: UUID) -> None:
        await self._collection.delete_one({"_id": message_id})

    async def count_unread(self, user_id: UUID) -> int:
        return await self._collection.count_documents(unread_recipient_filter(user_id))

    async def list_replies(self, parent_id: UUID, user_id: UUID) -> list[Message]:
        cursor = self._collection.find({"parent_id": parent_id, **visibility_filter(user_id)}).sort("created_at", 1)
        return await Message.list_cursor(cursor)

    async def get_draft(self, user_id: UUID) -> MessageDraft | None:
        return MessageDraft.from_mongo(await self._drafts.find_one({"user_id": user_id}))

    async def save_draft(self, draft: MessageDraft) -> None:
        await self._drafts.replace_one({"user_id": draft.user_id}, draft.to_mongo(), upsert=True)

    async def delete_draft(self, user_id: UUID) -> bool:
        result = await self._drafts.delete_one({"user_id": user_id})
        return result.deleted_count > 0
