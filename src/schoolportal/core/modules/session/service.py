import secrets
from datetime import timedelta
from uuid import UUID

import structlog

from schoolportal.core.core import Service
from schoolportal.core.modules.session.models import AuthToken, Session, SessionData
from schoolportal.core.modules.user.models import User, UserType
from schoolportal.core.stores import Stores
from schoolportal.errors import AuthenticationError
from schoolportal.utils import now

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Creates, validates and destroys login sessions. Sole writer of the session store."""

    def __init__(self, stores: Stores) -> None:
        super().__init__(stores)
        self._store = stores.sessions

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._store.create_indexes()

    async def authenticate(
        self,
        username: str,
        password: str,
        expected_user_type: UserType | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> tuple[User, Session]:
        """Verify credentials and open a session.

        When the login form was for a specific role, a user of another role is
        rejected as if the password were wrong.
        """
        user = self.core.services.user.verify_password(username, password)
        if user is None:
            logger.info("login_failed", username=username, reason="invalid_credentials")
            raise AuthenticationError("Invalid username or password")

        if expected_user_type is not None and user.user_type != expected_user_type:
            logger.info("login_failed", username=username, reason="user_type_mismatch")
            await self.core.services.audit.log(
                user.id,
                user.user_type,
                "LOGIN_FAILED",
                "Session",
                changes={"reason": "User type mismatch"},
                ip_address=ip_address,
                user_agent=user_agent,
            )
            raise AuthenticationError("Invalid username or password")

        session = await self.create_session(user, ip_address, user_agent)
        return user, session

    async def create_session(self, user: User, ip_address: str | None = None, user_agent: str | None = None) -> Session:
        created_at = now()
        session = Session(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            user_type=user.user_type,
            username=user.username,
            created_at=created_at,
            expires_at=created_at + timedelta(hours=self.core.config.session_duration_hours),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await self._store.insert(session)
        await self.core.services.audit.log(
            user.id, user.user_type, "LOGIN", "Session", session.id, ip_address=ip_address, user_agent=user_agent
        )
        logger.info("session_created", user_id=str(user.id), user_type=user.user_type)
        return session

    async def validate_session(self, auth_token: AuthToken | None) -> SessionData | None:
        """Resolve a token to the caller's identity; None when there is no usable session."""
        if not auth_token:
            return None

        session = await self._store.get_by_token(auth_token)
        if session is None or session.expires_at <= now():
            return None

        if not self.core.services.user.has_user(session.user_id):
            return None

        return SessionData.from_session(session)

    async def destroy_session(self, auth_token: AuthToken | None) -> None:
        """Remove the session. Destroying an absent session is a no-op."""
        if not auth_token:
            return

        session = await self.validate_session(auth_token)
        removed = await self._store.delete_by_token(auth_token)
        if session is not None and removed:
            await self.core.services.audit.log(
                session.user_id, session.user_type, "LOGOUT", "Session", session.session_id
            )
            logger.info("session_destroyed", user_id=str(session.user_id))

    async def list_active_sessions(self, user_id: UUID) -> list[Session]:
        """Get the user's unexpired sessions, newest first."""
        return await self._store.list_active(user_id, now())

    async def terminate_sessions(
        self, current: SessionData, session_ids: list[UUID] | None = None, terminate_all: bool = False
    ) -> int:
        """Delete other sessions of the current user. The current session is always kept."""
        if terminate_all:
            count = await self._store.delete_for_user(current.user_id, exclude_id=current.session_id)
            action = "TERMINATE_ALL_SESSIONS"
        elif session_ids:
            count = await self._store.delete_for_user(current.user_id, exclude_id=current.session_id, session_ids=session_ids)
            action = "TERMINATE_SESSIONS"
        else:
            return 0

        await self.core.services.audit.log(
            current.user_id, current.user_type, action, "Session", changes={"terminated_count": count}
        )
        logger.info("sessions_terminated", user_id=str(current.user_id), count=count)
        return count

    async def terminate_all_for_user(self, user_id: UUID) -> int:
        """Delete every session of a user, e.g. after their password changed."""
        count = await self._store.delete_for_user(user_id)
        logger.info("all_sessions_terminated", user_id=str(user_id), count=count)
        return count
