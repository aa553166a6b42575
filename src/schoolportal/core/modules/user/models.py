from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from schoolportal.core.db import MongoModel
from schoolportal.utils import now


class UserType(StrEnum):
    """Role of an account. Determines landing area and permissions."""

    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"
    PARENT = "PARENT"


class User(MongoModel):
    """Account of any role with credentials.

    Indexed on username - unique, user_type.
    """

    username: str
    password_hash: str  # bcrypt hash
    user_type: UserType
    name: str
    surname: str
    email: str | None = None
    created_at: datetime = Field(default_factory=now)

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    user_type: UserType = Field(..., description="Role of the account")
    name: str = Field(..., description="First name")
    surname: str = Field(..., description="Last name")
    email: str | None = Field(None, description="Contact email")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            username=user.username,
            user_type=user.user_type,
            name=user.name,
            surname=user.surname,
            email=user.email,
        )
