"""Messaging API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from schoolportal.core.modules.message.models import (
    MessageDetail,
    MessageDraft,
    MessageFilter,
    MessagePriority,
    MessageType,
    MessageView,
)
from schoolportal.core.modules.user.models import UserType
from schoolportal.core.pagination import PaginationResult
from schoolportal.web.deps import AppDep, AuthTokenDep
from schoolportal.web.openapi import ErrorResponse, SuccessResponse

router: APIRouter = APIRouter(tags=["messages"])


class SendMessageRequest(BaseModel):
    """Request to send a direct message."""

    recipient_ids: list[UUID] = Field(..., min_length=1, description="User IDs of the recipients")
    content: str = Field(..., min_length=1, description="Message body")
    subject: str | None = Field(None, description="Optional subject line")
    priority: MessagePriority = Field(MessagePriority.NORMAL, description="Priority")
    parent_id: UUID | None = Field(None, description="Message being replied to")


class BroadcastMessageRequest(BaseModel):
    """Request to message every user of some roles."""

    target_user_types: list[UserType] = Field(..., min_length=1, description="Roles that receive the message")
    content: str = Field(..., min_length=1, description="Message body")
    subject: str | None = Field(None, description="Optional subject line")
    priority: MessagePriority = Field(MessagePriority.NORMAL, description="Priority")


class SaveDraftRequest(BaseModel):
    """Message being composed; nothing is validated until it is sent."""

    content: str = Field("", description="Message body so far")
    subject: str | None = Field(None, description="Subject line so far")
    recipient_ids: list[UUID] = Field(default_factory=list, description="Chosen recipients so far")


class SendMessageResponse(BaseModel):
    message_id: UUID = Field(..., description="ID of the created message")
    success: bool = Field(True, description="Always true")


class UnreadCountResponse(BaseModel):
    count: int = Field(..., description="Number of unread received messages", ge=0)


@router.get(
    "/messages",
    summary="List messages",
    description="Get paginated sent and received messages of the caller, newest first.",
    operation_id="listMessages",
    responses={
        200: {"description": "Paginated list of messages"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_messages(
    app: AppDep,
    auth_token: AuthTokenDep,
    unread_only: Annotated[bool, Query(description="Only received messages not yet read")] = False,
    message_type: Annotated[MessageType | None, Query(description="Filter by message type")] = None,
    priority: Annotated[MessagePriority | None, Query(description="Filter by priority")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[MessageView]:
    filters = MessageFilter(unread_only=unread_only, message_type=message_type, priority=priority)
    return await app.list_messages(auth_token, filters, limit, offset)


@router.get(
    "/messages/search",
    summary="Search messages",
    description="Case-insensitive search in content, subject and sender name of the caller's messages.",
    operation_id="searchMessages",
    responses={
        200: {"description": "Matching messages"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def search_messages(
    app: AppDep,
    auth_token: AuthTokenDep,
    q: Annotated[str, Query(min_length=1, description="Text to search for")],
    limit: Annotated[int, Query(ge=1, le=100, description="Maximum items to return")] = 20,
) -> list[MessageView]:
    return await app.search_messages(auth_token, q, limit)


@router.get(
    "/messages/unread-count",
    summary="Count unread messages",
    operation_id="getUnreadCount",
    responses={
        200: {"description": "Unread count"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_unread_count(app: AppDep, auth_token: AuthTokenDep) -> UnreadCountResponse:
    return UnreadCountResponse(count=await app.get_unread_count(auth_token))


@router.post(
    "/messages",
    summary="Send message",
    description="Send a direct message. Unknown recipients are ignored; at least one must exist.",
    operation_id="sendMessage",
    status_code=201,
    responses={
        201: {"description": "Message sent"},
        400: {"model": ErrorResponse, "description": "No valid recipients"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Replied-to message not found"},
    },
)
async def send_message(request: SendMessageRequest, app: AppDep, auth_token: AuthTokenDep) -> SendMessageResponse:
    message_id = await app.send_message(
        auth_token, request.recipient_ids, request.content, request.subject, request.priority, request.parent_id
    )
    return SendMessageResponse(message_id=message_id)


@router.post(
    "/messages/broadcast",
    summary="Broadcast message",
    description="Send a message to every user of the given roles. Only admins and teachers can broadcast.",
    operation_id="broadcastMessage",
    status_code=201,
    responses={
        201: {"description": "Message sent"},
        400: {"model": ErrorResponse, "description": "No recipients"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Role cannot broadcast"},
    },
)
async def broadcast_message(
    request: BroadcastMessageRequest, app: AppDep, auth_token: AuthTokenDep
) -> SendMessageResponse:
    message_id = await app.broadcast_message(
        auth_token, set(request.target_user_types), request.content, request.subject, request.priority
    )
    return SendMessageResponse(message_id=message_id)


@router.get(
    "/messages/draft",
    summary="Get draft",
    description="Get the caller's unsent draft, or null when there is none.",
    operation_id="getDraft",
    responses={
        200: {"description": "Draft or null"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_draft(app: AppDep, auth_token: AuthTokenDep) -> MessageDraft | None:
    return await app.get_draft(auth_token)


@router.put(
    "/messages/draft",
    summary="Save draft",
    description="Save the caller's draft, replacing the previous one.",
    operation_id="saveDraft",
    responses={
        200: {"description": "Saved draft"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def save_draft(request: SaveDraftRequest, app: AppDep, auth_token: AuthTokenDep) -> MessageDraft:
    return await app.save_draft(auth_token, request.content, request.subject, request.recipient_ids)


@router.delete(
    "/messages/draft",
    summary="Discard draft",
    operation_id="deleteDraft",
    responses={
        200: {"description": "Draft discarded (no-op when there is none)"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def delete_draft(app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.delete_draft(auth_token)
    return SuccessResponse()


@router.get(
    "/messages/{message_id}",
    summary="Get message",
    description="Get a message the caller sent or received, with its visible thread. A recipient's first view marks it read.",
    operation_id="getMessage",
    responses={
        200: {"description": "Message"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Message not found"},
    },
)
async def get_message(message_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> MessageDetail:
    return await app.get_message(auth_token, message_id)


@router.post(
    "/messages/{message_id}/read",
    summary="Mark message as read",
    operation_id="markMessageRead",
    responses={
        200: {"description": "Message marked read (no-op if already read)"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Message not found"},
    },
)
async def mark_message_read(message_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.mark_message_read(auth_token, message_id)
    return SuccessResponse()


@router.delete(
    "/messages/{message_id}",
    summary="Delete message",
    description="The sender deletes the message for everyone; a recipient removes it from their own mailbox.",
    operation_id="deleteMessage",
    responses={
        200: {"description": "Message deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Message not found"},
    },
)
async def delete_message(message_id: UUID, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.delete_message(auth_token, message_id)
    return SuccessResponse()
