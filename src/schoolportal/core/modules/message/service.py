from uuid import UUID

import structlog

from schoolportal.core.core import Service
from schoolportal.core.modules.message.models import (
    Message,
    MessageDetail,
    MessageDraft,
    MessageFilter,
    MessagePriority,
    MessageRecipient,
    MessageType,
    MessageView,
)
from schoolportal.core.modules.session.models import SessionData
from schoolportal.core.modules.user.models import User, UserType
from schoolportal.core.pagination import PaginationResult
from schoolportal.core.stores import Stores
from schoolportal.errors import NotFoundError, ValidationError
from schoolportal.utils import now

logger = structlog.get_logger(__name__)


class MessageService(Service):
    """Direct and broadcast messaging with per-recipient read state."""

    def __init__(self, stores: Stores) -> None:
        super().__init__(stores)
        self._store = stores.messages

    async def on_start(self) -> None:
        await self._store.create_indexes()

    async def send_message(
        self,
        sender: SessionData,
        recipient_ids: list[UUID],
        content: str,
        subject: str | None = None,
        priority: MessagePriority = MessagePriority.NORMAL,
        parent_id: UUID | None = None,
    ) -> Message:
        """Send a direct message. Unknown recipients are dropped; at least one must remain."""
        recipients = [
            self._to_recipient(self.core.services.user.get_user(user_id))
            for user_id in dict.fromkeys(recipient_ids)
            if self.core.services.user.has_user(user_id)
        ]
        if not recipients:
            raise ValidationError("No valid recipients found")

        if parent_id is not None:
            await self.get_message_by_id(parent_id, sender.user_id, sender.user_type)

        message = await self._create(sender, recipients, content, subject, priority, MessageType.DIRECT, parent_id)
        await self.core.services.audit.log(
            sender.user_id,
            sender.user_type,
            "SEND_MESSAGE",
            "Message",
            message.id,
            changes={"recipients": len(recipients), "message_type": MessageType.DIRECT},
        )
        return message

    async def broadcast_message(
        self,
        sender: SessionData,
        target_user_types: set[UserType],
        content: str,
        subject: str | None = None,
        priority: MessagePriority = MessagePriority.NORMAL,
    ) -> Message:
        """Send a message to every user of the target roles except the sender."""
        recipients = [
            self._to_recipient(user)
            for user in self.core.services.user.get_users_by_type(target_user_types)
            if user.id != sender.user_id
        ]
        if not recipients:
            raise ValidationError("No recipients found for broadcast")

        message = await self._create(sender, recipients, content, subject, priority, MessageType.BROADCAST, None)
        await self.core.services.audit.log(
            sender.user_id,
            sender.user_type,
            "BROADCAST_MESSAGE",
            "Message",
            message.id,
            changes={"recipients": len(recipients), "target_user_types": sorted(target_user_types)},
        )
        return message

    async def get_message_by_id(self, message_id: UUID, caller_id: UUID, caller_type: UserType) -> Message:
        """Get a message the caller sent or received.

        Messages of other users are reported as missing, not forbidden.
        """
        message = await self._store.find_visible(message_id, caller_id)
        if message is None:
            logger.debug("message_not_visible", message_id=str(message_id), caller_type=caller_type)
            raise NotFoundError("Message not found")
        return message

    async def view_message(self, message_id: UUID, caller_id: UUID, caller_type: UserType) -> MessageDetail:
        """Fetch a message with its thread for display, marking it read on the recipient's first view.

        Only the opened message is marked read; the parent and replies keep their state.
        """
        message = await self.get_message_by_id(message_id, caller_id, caller_type)
        parent = None
        if message.parent_id is not None:
            parent = await self._store.find_visible(message.parent_id, caller_id)
        replies = await self._store.list_replies(message.id, caller_id)

        view = MessageDetail.from_thread(message, caller_id, parent, replies)
        if not view.is_sent and not view.is_read:
            await self.mark_as_read(message_id, caller_id, caller_type)
            view.is_read = True
        return view

    async def mark_as_read(self, message_id: UUID, caller_id: UUID, caller_type: UserType) -> bool:
        """Flip the caller's read flag. Returns False when it was already read."""
        changed = await self._store.mark_read(message_id, caller_id, now())
        if changed:
            await self.core.services.audit.log(caller_id, caller_type, "READ_MESSAGE", "Message", message_id)
            logger.debug("message_read", message_id=str(message_id), user_id=str(caller_id))
        return changed

    async def list_messages(
        self, caller_id: UUID, filters: MessageFilter, limit: int = 50, offset: int = 0
    ) -> PaginationResult[MessageView]:
        """Get paginated sent and received messages, newest first."""
        total = await self._store.count_visible(caller_id, filters)
        messages = await self._store.list_visible(caller_id, filters, limit, offset)
        return PaginationResult(
            items=[MessageView.from_domain(message, caller_id) for message in messages],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def search_messages(self, caller_id: UUID, text: str, limit: int = 20) -> list[MessageView]:
        messages = await self._store.search_visible(caller_id, text, limit)
        return [MessageView.from_domain(message, caller_id) for message in messages]

    async def unread_count(self, caller_id: UUID) -> int:
        return await self._store.count_unread(caller_id)

    async def delete_message(self, message_id: UUID, caller_id: UUID, caller_type: UserType) -> None:
        """Sender deletes the message for everyone; a recipient only hides it for themself."""
        message = await self.get_message_by_id(message_id, caller_id, caller_type)
        if message.sender_id == caller_id:
            await self._store.delete(message_id)
        else:
            await self._store.mark_deleted_for(message_id, caller_id, now())
        await self.core.services.audit.log(caller_id, caller_type, "DELETE_MESSAGE", "Message", message_id)

    async def get_draft(self, user_id: UUID) -> MessageDraft | None:
        return await self._store.get_draft(user_id)

    async def save_draft(
        self, user_id: UUID, content: str, subject: str | None = None, recipient_ids: list[UUID] | None = None
    ) -> MessageDraft:
        """Replace the user's draft, keeping its id when one exists."""
        draft = MessageDraft(
            user_id=user_id,
            subject=subject,
            content=content,
            recipient_ids=list(dict.fromkeys(recipient_ids or [])),
        )
        existing = await self._store.get_draft(user_id)
        if existing is not None:
            draft.id = existing.id
        await self._store.save_draft(draft)
        return draft

    async def delete_draft(self, user_id: UUID) -> None:
        """Discard the user's draft. Deleting a missing draft is a no-op."""
        await self._store.delete_draft(user_id)

    async def _create(
        self,
        sender: SessionData,
        recipients: list[MessageRecipient],
        content: str,
        subject: str | None,
        priority: MessagePriority,
        message_type: MessageType,
        parent_id: UUID | None,
    ) -> Message:
        sender_user = self.core.services.user.get_user(sender.user_id)
        message = Message(
            sender_id=sender.user_id,
            sender_type=sender.user_type,
            sender_name=sender_user.full_name,
            subject=subject,
            content=content,
            message_type=message_type,
            priority=priority,
            parent_id=parent_id,
            recipients=recipients,
        )
        await self._store.insert(message)
        logger.info("message_sent", message_id=str(message.id), recipients=len(recipients), message_type=message_type)
        return message

    @staticmethod
    def _to_recipient(user: User) -> MessageRecipient:
        return MessageRecipient(user_id=user.id, user_type=user.user_type, user_name=user.full_name)
