"""Session management models."""

from datetime import datetime
from typing import NewType
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from schoolportal.core.db import MongoModel
from schoolportal.core.modules.user.models import UserType
from schoolportal.utils import now

AuthToken = NewType("AuthToken", str)


class Session(MongoModel):
    """Server-side login session addressed by an opaque token.

    Indexed on token - unique, user_id, expires_at (TTL).
    """

    token: str
    user_id: UUID
    user_type: UserType  # Copied from the user at login, never re-derived
    username: str
    created_at: datetime = Field(default_factory=now)
    expires_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None


class SessionData(BaseModel):
    """Identity of the caller behind a valid session."""

    session_id: UUID
    user_id: UUID
    user_type: UserType
    username: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_session(cls, session: Session) -> "SessionData":
        return cls(
            session_id=session.id,
            user_id=session.user_id,
            user_type=session.user_type,
            username=session.username,
        )


class SessionSummary(BaseModel):
    """Session details shown to its owner."""

    id: UUID = Field(..., description="Session ID")
    ip_address: str | None = Field(None, description="Client address at login")
    user_agent: str | None = Field(None, description="Client user agent at login")
    created_at: datetime = Field(..., description="Login time")
    expires_at: datetime = Field(..., description="Expiry time")

    @classmethod
    def from_domain(cls, session: Session) -> "SessionSummary":
        return cls(
            id=session.id,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            created_at=session.created_at,
            expires_at=session.expires_at,
        )
