from datetime import datetime
from uuid import UUID

from pydantic import Field

from schoolportal.core.db import MongoModel
from schoolportal.utils import now


class PasswordReset(MongoModel):
    """Pending password reset of one user.

    Indexed on user_id - unique, expires_at (TTL).
    """

    user_id: UUID
    code: str  # 6-digit code sent to the user's email
    attempts: int = 0  # Wrong codes entered so far
    reset_token: str | None = None  # Issued once the code is verified
    created_at: datetime = Field(default_factory=now)
    expires_at: datetime

    def is_expired(self) -> bool:
        return self.expires_at <= now()
