from typing import Any
from uuid import UUID

import structlog

from schoolportal.core.core import Service
from schoolportal.core.modules.audit.models import AuditEntry
from schoolportal.core.modules.user.models import UserType
from schoolportal.core.stores import Stores

logger = structlog.get_logger(__name__)


class AuditService(Service):
    """Append-only audit trail."""

    def __init__(self, stores: Stores) -> None:
        super().__init__(stores)
        self._store = stores.audit

    async def on_start(self) -> None:
        await self._store.create_indexes()

    async def log(
        self,
        user_id: UUID,
        user_type: UserType,
        action: str,
        entity: str,
        entity_id: UUID | None = None,
        changes: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuditEntry:
        entry = AuditEntry(
            user_id=user_id,
            user_type=user_type,
            action=action,
            entity=entity,
            entity_id=entity_id,
            changes=changes,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await self._store.insert(entry)
        logger.debug("audit_logged", action=action, entity=entity, user_id=str(user_id))
        return entry
