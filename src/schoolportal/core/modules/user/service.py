from uuid import UUID

import bcrypt
import structlog

from schoolportal.core.core import Service
from schoolportal.core.modules.user.models import User, UserType
from schoolportal.core.modules.user.validators import validate_email, validate_password, validate_username
from schoolportal.core.stores import Stores
from schoolportal.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages accounts of all roles with in-memory cache."""

    def __init__(self, stores: Stores) -> None:
        super().__init__(stores)
        self._store = stores.users
        self._users: dict[UUID, User] = {}

    def get_user(self, user_id: UUID) -> User:
        """Get user by ID from cache."""
        if user_id not in self._users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self._users[user_id]

    def get_user_by_username(self, username: str) -> User:
        """Get user by username from cache."""
        user = self.find_user_by_username(username)
        if user is None:
            raise NotFoundError(f"User '{username}' not found")
        return user

    def find_user_by_username(self, username: str) -> User | None:
        return next((u for u in self._users.values() if u.username == username), None)

    def find_user_by_email(self, email: str) -> User | None:
        """Find a user by email, ignoring case."""
        email = email.lower()
        return next((u for u in self._users.values() if u.email is not None and u.email.lower() == email), None)

    def has_user(self, user_id: UUID) -> bool:
        """Check if user exists by ID."""
        return user_id in self._users

    def has_username(self, username: str) -> bool:
        """Check if username exists."""
        return any(user.username == username for user in self._users.values())

    def get_all_users(self) -> list[User]:
        """Get all users from cache."""
        return list(self._users.values())

    def get_users_by_type(self, user_types: set[UserType]) -> list[User]:
        """Get all users whose role is in user_types."""
        return [user for user in self._users.values() if user.user_type in user_types]

    async def create_user(
        self, username: str, password: str, user_type: UserType, name: str, surname: str, email: str | None = None
    ) -> User:
        """Create user with hashed password."""
        validate_username(username)
        if self.has_username(username):
            raise ValidationError(f"User '{username}' already exists")

        if email is not None:
            validate_email(email)
            if self.find_user_by_email(email) is not None:
                raise ValidationError("Email is already in use")
        validate_password(password)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        user = User(
            username=username,
            password_hash=password_hash,
            user_type=user_type,
            name=name,
            surname=surname,
            email=email,
        )
        await self._store.insert(user)
        return await self.update_user_cache(user.id)

    async def set_password(self, user_id: UUID, password: str) -> User:
        """Replace a user's password after validating it."""
        validate_password(password)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        await self._store.update_password(user_id, password_hash)
        return await self.update_user_cache(user_id)

    def verify_password(self, username: str, password: str) -> User | None:
        """Return the user when the password matches the stored hash."""
        user = self.find_user_by_username(username)
        if user is None:
            return None
        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            return None
        return user

    async def ensure_admin_user_exists(self) -> None:
        """Create the bootstrap admin account if not exists."""
        config = self.core.config
        if not self.has_username(config.admin_username):
            await self.create_user(config.admin_username, config.admin_password, UserType.ADMIN, "Admin", "User")
            logger.info("admin_user_created", username=config.admin_username)

    async def update_all_users_cache(self) -> None:
        """Reload all users cache from the store."""
        users = await self._store.list_all()
        self._users = {user.id: user for user in users}

    async def update_user_cache(self, user_id: UUID) -> User:
        """Reload a specific user cache from the store."""
        user = await self._store.get(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        self._users[user_id] = user
        return user

    async def on_start(self) -> None:
        """Initialize indexes, cache, and admin user."""
        await self._store.create_indexes()
        await self.update_all_users_cache()
        await self.ensure_admin_user_exists()
        logger.debug("user_service_started", user_count=len(self._users))
