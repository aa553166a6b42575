from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from schoolportal.core.db import MongoModel
from schoolportal.core.modules.user.models import UserType
from schoolportal.utils import now


class AuditEntry(MongoModel):
    """Record of a security-relevant action (login, logout, message reads).

    Indexed on user_id, created_at.
    """

    user_id: UUID
    user_type: UserType
    action: str  # LOGIN, LOGOUT, LOGIN_FAILED, READ_MESSAGE, ...
    entity: str  # Session, Message, Subject, User
    entity_id: UUID | None = None
    changes: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime = Field(default_factory=now)
