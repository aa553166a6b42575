"""Persistence handles shared by all services.

Services never reach for a global database: Core hands them a Stores bundle,
built from MongoDB in production and from in-memory fakes in tests.
"""

from dataclasses import dataclass
from typing import Any, Self

from pymongo.asynchronous.database import AsyncDatabase

from schoolportal.core.modules.audit.store import AuditStore, MongoAuditStore
from schoolportal.core.modules.message.store import MessageStore, MongoMessageStore
from schoolportal.core.modules.password_reset.store import MongoPasswordResetStore, PasswordResetStore
from schoolportal.core.modules.school.store import MongoSchoolStore, SchoolStore
from schoolportal.core.modules.session.store import MongoSessionStore, SessionStore
from schoolportal.core.modules.user.store import MongoUserStore, UserStore


@dataclass
class Stores:
    users: UserStore
    sessions: SessionStore
    messages: MessageStore
    audit: AuditStore
    school: SchoolStore
    password_resets: PasswordResetStore

    @classmethod
    def from_database(cls, database: AsyncDatabase[dict[str, Any]]) -> Self:
        return cls(
            users=MongoUserStore(database),
            sessions=MongoSessionStore(database),
            messages=MongoMessageStore(database),
            audit=MongoAuditStore(database),
            school=MongoSchoolStore(database),
            password_resets=MongoPasswordResetStore(database),
        )
