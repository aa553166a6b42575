from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from schoolportal.config import Config
from schoolportal.core.core import Core
from schoolportal.core.modules.access.landing import Landing, landing_for
from schoolportal.core.modules.audit.models import AuditEntry
from schoolportal.core.modules.message.models import (
    MessageDetail,
    MessageDraft,
    MessageFilter,
    MessagePriority,
    MessageView,
)
from schoolportal.core.modules.school.models import Grade, SchoolClass, Subject
from schoolportal.core.modules.session.models import AuthToken, Session, SessionData, SessionSummary
from schoolportal.core.modules.user.models import UserType, UserView
from schoolportal.core.pagination import PaginationResult
from schoolportal.core.stores import Stores

MESSAGE_BROADCASTERS = frozenset({UserType.ADMIN, UserType.TEACHER})


class App:
    """Facade for all application operations, authenticates the caller before delegating to Core."""

    def __init__(self, config: Config, stores: Stores | None = None) -> None:
        self._core = Core(config, stores)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Sessions ===
    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        """Check if authentication token is valid."""
        return await self._core.services.session.validate_session(auth_token) is not None

    async def login(
        self,
        username: str,
        password: str,
        expected_user_type: UserType | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[UserView, Session]:
        """Authenticate user and create session."""
        user, session = await self._core.services.session.authenticate(
            username, password, expected_user_type, ip_address, user_agent
        )
        return UserView.from_domain(user), session

    async def logout(self, auth_token: AuthToken | None) -> None:
        """Destroy the caller's session if there is one."""
        await self._core.services.session.destroy_session(auth_token)

    async def get_landing(self, auth_token: AuthToken | None) -> Landing:
        """Decide which area the caller lands in."""
        session = await self._core.services.session.validate_session(auth_token)
        return landing_for(session.user_type if session is not None else None)

    async def get_current_user(self, auth_token: AuthToken | None) -> UserView:
        """Get current authenticated user profile."""
        session = await self._core.services.access.require_auth(auth_token)
        return UserView.from_domain(self._core.services.user.get_user(session.user_id))

    async def get_session_info(self, auth_token: AuthToken | None) -> tuple[SessionData, list[SessionSummary]]:
        """Get the caller's identity and all their active sessions."""
        session = await self._core.services.access.require_auth(auth_token)
        active = await self._core.services.session.list_active_sessions(session.user_id)
        return session, [SessionSummary.from_domain(s) for s in active]

    async def terminate_sessions(
        self, auth_token: AuthToken | None, session_ids: list[UUID] | None, terminate_all: bool
    ) -> int:
        """End other sessions of the caller."""
        session = await self._core.services.access.require_auth(auth_token)
        return await self._core.services.session.terminate_sessions(session, session_ids, terminate_all)

    async def request_password_reset(
        self, email: str, ip_address: str | None = None, user_agent: str | None = None
    ) -> None:
        """Send a reset code if an account uses this email. Whether one does is never revealed."""
        await self._core.services.password_reset.request_reset(email, ip_address, user_agent)

    async def verify_reset_code(self, email: str, code: str) -> str:
        return await self._core.services.password_reset.verify_code(email, code)

    async def reset_password(
        self,
        email: str,
        reset_token: str,
        new_password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        await self._core.services.password_reset.reset_password(email, reset_token, new_password, ip_address, user_agent)

    # === Users ===
    async def create_user(
        self,
        auth_token: AuthToken | None,
        username: str,
        password: str,
        user_type: UserType,
        name: str,
        surname: str,
        email: str | None = None,
    ) -> UserView:
        """Create a new account (admin only)."""
        session = await self._core.services.access.require_role(auth_token, {UserType.ADMIN})
        user = await self._core.services.user.create_user(username, password, user_type, name, surname, email)
        await self._audit(session, "CREATE_USER", "User", user.id, {"user_type": user.user_type})
        return UserView.from_domain(user)

    # === Messages ===
    async def list_messages(
        self, auth_token: AuthToken | None, filters: MessageFilter, limit: int = 50, offset: int = 0
    ) -> PaginationResult[MessageView]:
        """Get the caller's sent and received messages."""
        session = await self._core.services.access.require_auth(auth_token)
        return await self._core.services.message.list_messages(session.user_id, filters, limit, offset)

    async def search_messages(self, auth_token: AuthToken | None, text: str, limit: int = 20) -> list[MessageView]:
        """Search the caller's messages by content, subject or sender name."""
        session = await self._core.services.access.require_auth(auth_token)
        return await self._core.services.message.search_messages(session.user_id, text, limit)

    async def get_unread_count(self, auth_token: AuthToken | None) -> int:
        session = await self._core.services.access.require_auth(auth_token)
        return await self._core.services.message.unread_count(session.user_id)

    async def send_message(
        self,
        auth_token: AuthToken | None,
        recipient_ids: list[UUID],
        content: str,
        subject: str | None = None,
        priority: MessagePriority = MessagePriority.NORMAL,
        parent_id: UUID | None = None,
    ) -> UUID:
        """Send a direct message from the caller."""
        session = await self._core.services.access.require_auth(auth_token)
        message = await self._core.services.message.send_message(
            session, recipient_ids, content, subject, priority, parent_id
        )
        return message.id

    async def broadcast_message(
        self,
        auth_token: AuthToken | None,
        target_user_types: set[UserType],
        content: str,
        subject: str | None = None,
        priority: MessagePriority = MessagePriority.NORMAL,
    ) -> UUID:
        """Send a message to all users of the given roles (admins and teachers only)."""
        session = await self._core.services.access.require_role(auth_token, MESSAGE_BROADCASTERS)
        message = await self._core.services.message.broadcast_message(
            session, target_user_types, content, subject, priority
        )
        return message.id

    async def get_message(self, auth_token: AuthToken | None, message_id: UUID) -> MessageDetail:
        """Open a message with its thread; the recipient's first view marks it read."""
        session = await self._core.services.access.require_auth(auth_token)
        return await self._core.services.message.view_message(message_id, session.user_id, session.user_type)

    async def mark_message_read(self, auth_token: AuthToken | None, message_id: UUID) -> None:
        session = await self._core.services.access.require_auth(auth_token)
        await self._core.services.message.get_message_by_id(message_id, session.user_id, session.user_type)
        await self._core.services.message.mark_as_read(message_id, session.user_id, session.user_type)

    async def delete_message(self, auth_token: AuthToken | None, message_id: UUID) -> None:
        session = await self._core.services.access.require_auth(auth_token)
        await self._core.services.message.delete_message(message_id, session.user_id, session.user_type)

    async def get_draft(self, auth_token: AuthToken | None) -> MessageDraft | None:
        session = await self._core.services.access.require_auth(auth_token)
        return await self._core.services.message.get_draft(session.user_id)

    async def save_draft(
        self, auth_token: AuthToken | None, content: str, subject: str | None, recipient_ids: list[UUID]
    ) -> MessageDraft:
        """Store the caller's message draft, replacing any previous one."""
        session = await self._core.services.access.require_auth(auth_token)
        return await self._core.services.message.save_draft(session.user_id, content, subject, recipient_ids)

    async def delete_draft(self, auth_token: AuthToken | None) -> None:
        session = await self._core.services.access.require_auth(auth_token)
        await self._core.services.message.delete_draft(session.user_id)

    # === School catalog ===
    async def list_grades(self, auth_token: AuthToken | None) -> list[Grade]:
        await self._core.services.access.require_auth(auth_token)
        return await self._core.services.school.list_grades()

    async def list_classes(self, auth_token: AuthToken | None) -> list[SchoolClass]:
        await self._core.services.access.require_auth(auth_token)
        return await self._core.services.school.list_classes()

    async def list_subjects(
        self, auth_token: AuthToken | None, search: str | None = None, limit: int = 10, offset: int = 0
    ) -> PaginationResult[Subject]:
        await self._core.services.access.require_auth(auth_token)
        return await self._core.services.school.list_subjects(search, limit, offset)

    async def create_subject(self, auth_token: AuthToken | None, name: str, teacher_ids: list[UUID]) -> Subject:
        """Create a subject (requires subjects:create permission)."""
        session = await self._core.services.access.ensure_permission(auth_token, "subjects", "create")
        subject = await self._core.services.school.create_subject(name, teacher_ids)
        await self._audit(session, "CREATE", "Subject", subject.id, {"name": subject.name})
        return subject

    # === Private helpers ===
    async def _audit(
        self, session: SessionData, action: str, entity: str, entity_id: UUID, changes: dict[str, str]
    ) -> AuditEntry:
        return await self._core.services.audit.log(session.user_id, session.user_type, action, entity, entity_id, changes)
