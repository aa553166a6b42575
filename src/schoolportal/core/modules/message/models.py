from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from schoolportal.core.db import MongoModel
from schoolportal.core.modules.user.models import UserType
from schoolportal.utils import now


class MessageType(StrEnum):
    DIRECT = "DIRECT"
    BROADCAST = "BROADCAST"


class MessagePriority(StrEnum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class MessageFilter(BaseModel):
    """Filters for listing a user's messages."""

    unread_only: bool = False  # Received and not yet read
    message_type: MessageType | None = None
    priority: MessagePriority | None = None


class MessageRecipient(BaseModel):
    """Per-recipient delivery state."""

    user_id: UUID
    user_type: UserType
    user_name: str
    read_at: datetime | None = None  # Set once on first view, never cleared
    deleted_at: datetime | None = None  # Hidden for this recipient only


class Message(MongoModel):
    """Message from one user to one or more recipients.

    Indexed on sender_id, recipients.user_id, created_at.
    """

    sender_id: UUID
    sender_type: UserType
    sender_name: str
    subject: str | None = None
    content: str
    message_type: MessageType = MessageType.DIRECT
    priority: MessagePriority = MessagePriority.NORMAL
    parent_id: UUID | None = None  # Message this one replies to
    recipients: list[MessageRecipient]
    created_at: datetime = Field(default_factory=now)

    def get_recipient(self, user_id: UUID) -> MessageRecipient | None:
        """Get the recipient entry of a user, ignoring entries they deleted."""
        for recipient in self.recipients:
            if recipient.user_id == user_id and recipient.deleted_at is None:
                return recipient
        return None

    def is_visible_to(self, user_id: UUID) -> bool:
        return self.sender_id == user_id or self.get_recipient(user_id) is not None


class MessageView(BaseModel):
    """Message as seen by one caller (API representation)."""

    id: UUID = Field(..., description="Message ID")
    sender_id: UUID = Field(..., description="Sender user ID")
    sender_name: str = Field(..., description="Sender display name")
    recipients: list[str] = Field(..., description="Recipient display names")
    subject: str = Field(..., description="Subject line")
    content: str = Field(..., description="Message body")
    message_type: MessageType = Field(..., description="Direct or broadcast")
    priority: MessagePriority = Field(..., description="Priority")
    parent_id: UUID | None = Field(None, description="Replied-to message ID")
    created_at: datetime = Field(..., description="Send time")
    is_read: bool = Field(..., description="Whether the caller has read the message as a recipient")
    is_sent: bool = Field(..., description="Whether the caller is the sender")

    @classmethod
    def from_domain(cls, message: Message, viewer_id: UUID) -> "MessageView":
        """Project a message onto the viewer's read/sent state."""
        recipient = message.get_recipient(viewer_id)
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            sender_name=message.sender_name,
            recipients=[r.user_name for r in message.recipients],
            subject=message.subject or "No Subject",
            content=message.content,
            message_type=message.message_type,
            priority=message.priority,
            parent_id=message.parent_id,
            created_at=message.created_at,
            is_read=recipient is not None and recipient.read_at is not None,
            is_sent=message.sender_id == viewer_id,
        )


class MessageDetail(MessageView):
    """A single opened message with its thread: the replied-to message and replies, as visible to the viewer."""

    parent: MessageView | None = Field(None, description="Message this one replies to")
    replies: list[MessageView] = Field(default_factory=list, description="Replies, oldest first")

    @classmethod
    def from_thread(
        cls, message: Message, viewer_id: UUID, parent: Message | None, replies: list[Message]
    ) -> "MessageDetail":
        return cls(
            **MessageView.from_domain(message, viewer_id).model_dump(),
            parent=MessageView.from_domain(parent, viewer_id) if parent is not None else None,
            replies=[MessageView.from_domain(reply, viewer_id) for reply in replies],
        )


class MessageDraft(MongoModel):
    """Message a user is still composing. Each user has at most one.

    Indexed on user_id - unique.
    """

    user_id: UUID
    subject: str | None = None
    content: str = ""
    recipient_ids: list[UUID] = Field(default_factory=list)  # Not checked until the message is sent
    updated_at: datetime = Field(default_factory=now)
