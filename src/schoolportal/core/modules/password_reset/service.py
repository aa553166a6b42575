import re
import secrets
from datetime import timedelta

import structlog

from schoolportal.core.core import Service
from schoolportal.core.modules.password_reset.models import PasswordReset
from schoolportal.core.modules.user.validators import validate_email, validate_password
from schoolportal.core.stores import Stores
from schoolportal.errors import ValidationError
from schoolportal.utils import now

logger = structlog.get_logger(__name__)

CODE_RE = re.compile(r"^\d{6}$")


class PasswordResetService(Service):
    """Email code based password reset: request a code, verify it for a reset token, set a new password.

    Unknown emails are indistinguishable from known ones until a correct code is entered.
    """

    def __init__(self, stores: Stores) -> None:
        super().__init__(stores)
        self._store = stores.password_resets

    async def on_start(self) -> None:
        await self._store.create_indexes()

    async def request_reset(
        self, email: str, ip_address: str | None = None, user_agent: str | None = None
    ) -> PasswordReset | None:
        """Issue a new code for the account with this email, replacing any pending reset."""
        validate_email(email)
        user = self.core.services.user.find_user_by_email(email)
        if user is None:
            logger.info("password_reset_unknown_email")
            return None

        created_at = now()
        reset = PasswordReset(
            user_id=user.id,
            code=f"{secrets.randbelow(900_000) + 100_000}",
            created_at=created_at,
            expires_at=created_at + timedelta(minutes=self.core.config.password_reset_code_minutes),
        )
        await self._store.delete_for_user(user.id)
        await self._store.put(reset)
        await self.core.services.audit.log(
            user.id,
            user.user_type,
            "PASSWORD_RESET_REQUESTED",
            "User",
            user.id,
            changes={"email": email},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        # No mail transport: the code is only written to the debug log
        logger.debug("password_reset_code_issued", email=email, code=reset.code)
        return reset

    async def verify_code(self, email: str, code: str) -> str:
        """Exchange a correct code for a one-time reset token."""
        if not CODE_RE.fullmatch(code):
            raise ValidationError("Invalid verification code format")

        user = self.core.services.user.find_user_by_email(email)
        reset = await self._store.get_for_user(user.id) if user is not None else None
        if reset is None or reset.is_expired():
            raise ValidationError("Invalid or expired verification code")

        if not secrets.compare_digest(reset.code, code):
            reset.attempts += 1
            if reset.attempts >= self.core.config.password_reset_max_attempts:
                await self._store.delete_for_user(reset.user_id)
                logger.info("password_reset_attempts_exhausted", user_id=str(reset.user_id))
            else:
                await self._store.put(reset)
            raise ValidationError("Invalid or expired verification code")

        reset.reset_token = secrets.token_urlsafe(32)
        await self._store.put(reset)
        return reset.reset_token

    async def reset_password(
        self,
        email: str,
        reset_token: str,
        new_password: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Set the new password and end every session of the user."""
        validate_password(new_password)

        user = self.core.services.user.find_user_by_email(email)
        reset = await self._store.get_for_user(user.id) if user is not None else None
        if (
            user is None
            or reset is None
            or reset.is_expired()
            or reset.reset_token is None
            or not secrets.compare_digest(reset.reset_token, reset_token)
        ):
            raise ValidationError("Invalid reset token or user not found")

        await self.core.services.user.set_password(user.id, new_password)
        await self._store.delete_for_user(user.id)
        terminated = await self.core.services.session.terminate_all_for_user(user.id)
        await self.core.services.audit.log(
            user.id,
            user.user_type,
            "PASSWORD_RESET_COMPLETED",
            "User",
            user.id,
            changes={"email": email, "terminated_sessions": terminated},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info("password_reset_completed", user_id=str(user.id))
