"""Shared pytest fixtures and in-memory stores."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from uuid import UUID

import bcrypt
import httpx
import pytest

from schoolportal.app import App
from schoolportal.config import Config
from schoolportal.core.core import Core
from schoolportal.core.modules.audit.models import AuditEntry
from schoolportal.core.modules.message.models import Message, MessageDraft, MessageFilter
from schoolportal.core.modules.password_reset.models import PasswordReset
from schoolportal.core.modules.school.models import Grade, SchoolClass, Subject
from schoolportal.core.modules.session.models import Session
from schoolportal.core.modules.user.models import User, UserType
from schoolportal.core.stores import Stores
from schoolportal.web.server import create_fastapi_app

PASSWORD = "correct-horse"


class FakeUserStore:
    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}

    async def create_indexes(self) -> None:
        pass

    async def insert(self, user: User) -> None:
        self.users[user.id] = user.model_copy(deep=True)

    async def get(self, user_id: UUID) -> User | None:
        user = self.users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def list_all(self) -> list[User]:
        return [user.model_copy(deep=True) for user in self.users.values()]

    async def update_password(self, user_id: UUID, password_hash: str) -> None:
        self.users[user_id].password_hash = password_hash


class FakeSessionStore:
    def __init__(self) -> None:
        self.sessions: dict[str, Session] = {}

    async def create_indexes(self) -> None:
        pass

    async def insert(self, session: Session) -> None:
        self.sessions[session.token] = session.model_copy(deep=True)

    async def get_by_token(self, token: str) -> Session | None:
        session = self.sessions.get(token)
        return session.model_copy(deep=True) if session else None

    async def delete_by_token(self, token: str) -> bool:
        return self.sessions.pop(token, None) is not None

    async def list_active(self, user_id: UUID, at: datetime) -> list[Session]:
        active = [s for s in self.sessions.values() if s.user_id == user_id and s.expires_at > at]
        return sorted(active, key=lambda s: s.created_at, reverse=True)

    async def delete_for_user(
        self, user_id: UUID, exclude_id: UUID | None = None, session_ids: list[UUID] | None = None
    ) -> int:
        doomed = [
            token
            for token, s in self.sessions.items()
            if s.user_id == user_id and s.id != exclude_id and (session_ids is None or s.id in session_ids)
        ]
        for token in doomed:
            del self.sessions[token]
        return len(doomed)


class FakeMessageStore:
    def __init__(self) -> None:
        self.messages: dict[UUID, Message] = {}
        self.read_updates = 0  # Number of mark_read calls that changed a document
        self.drafts: dict[UUID, MessageDraft] = {}

    async def create_indexes(self) -> None:
        pass

    async def insert(self, message: Message) -> None:
        self.messages[message.id] = message.model_copy(deep=True)

    async def find_visible(self, message_id: UUID, user_id: UUID) -> Message | None:
        message = self.messages.get(message_id)
        if message is None or not message.is_visible_to(user_id):
            return None
        return message.model_copy(deep=True)

    def _matching(self, user_id: UUID, filters: MessageFilter) -> list[Message]:
        result = []
        for message in self.messages.values():
            if filters.unread_only:
                recipient = message.get_recipient(user_id)
                if recipient is None or recipient.read_at is not None:
                    continue
            elif not message.is_visible_to(user_id):
                continue
            if filters.message_type is not None and message.message_type != filters.message_type:
                continue
            if filters.priority is not None and message.priority != filters.priority:
                continue
            result.append(message)
        return sorted(result, key=lambda m: m.created_at, reverse=True)

    async def list_visible(self, user_id: UUID, filters: MessageFilter, limit: int, offset: int) -> list[Message]:
        return [m.model_copy(deep=True) for m in self._matching(user_id, filters)[offset : offset + limit]]

    async def count_visible(self, user_id: UUID, filters: MessageFilter) -> int:
        return len(self._matching(user_id, filters))

    async def search_visible(self, user_id: UUID, text: str, limit: int) -> list[Message]:
        needle = text.lower()
        found = [
            m
            for m in self._matching(user_id, MessageFilter())
            if needle in m.content.lower() or needle in (m.subject or "").lower() or needle in m.sender_name.lower()
        ]
        return [m.model_copy(deep=True) for m in found[:limit]]

    async def mark_read(self, message_id: UUID, user_id: UUID, at: datetime) -> bool:
        message = self.messages.get(message_id)
        if message is None:
            return False
        for recipient in message.recipients:
            if recipient.user_id == user_id and recipient.read_at is None and recipient.deleted_at is None:
                recipient.read_at = at
                self.read_updates += 1
                return True
        return False

    async def mark_deleted_for(self, message_id: UUID, user_id: UUID, at: datetime) -> None:
        message = self.messages.get(message_id)
        if message is None:
            return
        for recipient in message.recipients:
            if recipient.user_id == user_id and recipient.deleted_at is None:
                recipient.deleted_at = at
                return

    async def delete(self, message_id: UUID) -> None:
        self.messages.pop(message_id, None)

    async def count_unread(self, user_id: UUID) -> int:
        return sum(
            1
            for m in self.messages.values()
            if any(r.user_id == user_id and r.read_at is None and r.deleted_at is None for r in m.recipients)
        )

    async def list_replies(self, parent_id: UUID, user_id: UUID) -> list[Message]:
        replies = [m for m in self.messages.values() if m.parent_id == parent_id and m.is_visible_to(user_id)]
        return [m.model_copy(deep=True) for m in sorted(replies, key=lambda m: m.created_at)]

    async def get_draft(self, user_id: UUID) -> MessageDraft | None:
        draft = self.drafts.get(user_id)
        return draft.model_copy(deep=True) if draft else None

    async def save_draft(self, draft: MessageDraft) -> None:
        self.drafts[draft.user_id] = draft.model_copy(deep=True)

    async def delete_draft(self, user_id: UUID) -> bool:
        return self.drafts.pop(user_id, None) is not None


class FakeAuditStore:
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    async def create_indexes(self) -> None:
        pass

    async def insert(self, entry: AuditEntry) -> None:
        self.entries.append(entry)

    def actions(self) -> list[str]:
        return [entry.action for entry in self.entries]


class FakePasswordResetStore:
    def __init__(self) -> None:
        self.resets: dict[UUID, PasswordReset] = {}  # By user_id

    async def create_indexes(self) -> None:
        pass

    async def put(self, reset: PasswordReset) -> None:
        self.resets[reset.user_id] = reset.model_copy(deep=True)

    async def get_for_user(self, user_id: UUID) -> PasswordReset | None:
        reset = self.resets.get(user_id)
        return reset.model_copy(deep=True) if reset else None

    async def delete_for_user(self, user_id: UUID) -> None:
        self.resets.pop(user_id, None)


class FakeSchoolStore:
    def __init__(self) -> None:
        self.grades: list[Grade] = []
        self.classes: list[SchoolClass] = []
        self.subjects: list[Subject] = []

    async def create_indexes(self) -> None:
        pass

    async def list_grades(self) -> list[Grade]:
        return sorted(self.grades, key=lambda g: g.level)

    async def list_classes(self) -> list[SchoolClass]:
        return sorted(self.classes, key=lambda c: c.name)

    def _subjects(self, search: str | None) -> list[Subject]:
        subjects = sorted(self.subjects, key=lambda s: s.name)
        if search:
            subjects = [s for s in subjects if search.lower() in s.name.lower()]
        return subjects

    async def list_subjects(self, search: str | None, limit: int, offset: int) -> list[Subject]:
        return self._subjects(search)[offset : offset + limit]

    async def count_subjects(self, search: str | None) -> int:
        return len(self._subjects(search))

    async def has_subject_named(self, name: str) -> bool:
        return any(s.name == name for s in self.subjects)

    async def insert_subject(self, subject: Subject) -> None:
        self.subjects.append(subject)


def make_user(username: str, user_type: UserType, name: str | None = None, surname: str = "Tester") -> User:
    """Build a user whose password is PASSWORD (cheap bcrypt rounds)."""
    password_hash = bcrypt.hashpw(PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")
    return User(
        username=username,
        password_hash=password_hash,
        user_type=user_type,
        name=name or username.capitalize(),
        surname=surname,
        email=f"{username}@school.test",
    )


@pytest.fixture
def password() -> str:
    return PASSWORD


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config():
    return Config(
        database_url="mongodb://localhost:27017/schoolportal_test",
        admin_username="admin",
        admin_password=PASSWORD,
        _env_file=None,
    )


@pytest.fixture
def stores():
    return Stores(
        users=FakeUserStore(),
        sessions=FakeSessionStore(),
        messages=FakeMessageStore(),
        audit=FakeAuditStore(),
        school=FakeSchoolStore(),
        password_resets=FakePasswordResetStore(),
    )


@pytest.fixture
def users(stores) -> dict[str, User]:
    """One account per role plus a second student, seeded before startup."""
    seeded = {
        "admin": make_user("admin", UserType.ADMIN),
        "teacher": make_user("teacher", UserType.TEACHER),
        "student": make_user("student", UserType.STUDENT),
        "student2": make_user("student2", UserType.STUDENT),
        "parent": make_user("parent", UserType.PARENT),
    }
    for user in seeded.values():
        stores.users.users[user.id] = user
    return seeded


@pytest.fixture
async def core(config, stores, users) -> AsyncGenerator[Core]:
    core = Core(config, stores)
    async with core.lifespan():
        yield core


@pytest.fixture
async def app(config, stores, users) -> AsyncGenerator[App]:
    app = App(config, stores)
    async with app.lifespan():
        yield app


@pytest.fixture
async def client(app, config) -> AsyncGenerator[httpx.AsyncClient]:
    fastapi_app = create_fastapi_app(app, config)
    # Unexpected errors are answered by the 500 handler instead of surfacing in the test
    transport = httpx.ASGITransport(app=fastapi_app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def login(client) -> Callable[[str], Awaitable[str]]:
    """Log in through the API and return the session token."""

    async def _login(username: str) -> str:
        response = await client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
        assert response.status_code == 200, response.text
        # Tests choose the carrier explicitly
        client.cookies.clear()
        return response.json()["token"]

    return _login


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    return bearer
