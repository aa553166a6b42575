from collections.abc import Collection

from schoolportal.core.core import Service
from schoolportal.core.modules.access.permissions import has_permission
from schoolportal.core.modules.session.models import AuthToken, SessionData
from schoolportal.core.modules.user.models import UserType
from schoolportal.errors import AccessDeniedError, AuthenticationError


class AccessService(Service):
    async def require_auth(self, auth_token: AuthToken | None) -> SessionData:
        """Ensure the caller has a valid session."""
        session = await self.core.services.session.validate_session(auth_token)
        if session is None:
            raise AuthenticationError
        return session

    async def require_role(self, auth_token: AuthToken | None, allowed_roles: Collection[UserType]) -> SessionData:
        """Ensure the caller is authenticated with one of the allowed roles."""
        session = await self.require_auth(auth_token)
        if session.user_type not in allowed_roles:
            raise AccessDeniedError(f"Access denied: role '{session.user_type}' is not allowed")
        return session

    async def ensure_permission(self, auth_token: AuthToken | None, resource: str, action: str) -> SessionData:
        """Ensure the caller's role may perform action on resource."""
        session = await self.require_auth(auth_token)
        if not has_permission(session.user_type, resource, action):
            raise AccessDeniedError(f"Access denied: cannot {action} {resource}")
        return session
