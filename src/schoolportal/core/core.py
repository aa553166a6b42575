from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast
from urllib.parse import urlparse

from pymongo import AsyncMongoClient

from schoolportal.config import Config
from schoolportal.core.stores import Stores


class Service:
    """Base class for services backed by the shared store bundle."""

    def __init__(self, stores: Stores) -> None:
        self.stores = stores
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from schoolportal.core.modules.access.service import AccessService  # noqa: PLC0415
    from schoolportal.core.modules.audit.service import AuditService  # noqa: PLC0415
    from schoolportal.core.modules.message.service import MessageService  # noqa: PLC0415
    from schoolportal.core.modules.password_reset.service import PasswordResetService  # noqa: PLC0415
    from schoolportal.core.modules.school.service import SchoolService  # noqa: PLC0415
    from schoolportal.core.modules.session.service import SessionService  # noqa: PLC0415
    from schoolportal.core.modules.user.service import UserService  # noqa: PLC0415

    user: UserService
    audit: AuditService
    session: SessionService
    password_reset: PasswordResetService
    access: AccessService
    message: MessageService
    school: SchoolService

    def __init__(self, stores: Stores) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._stores = stores

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - users must be cached before sessions are validated
        service_configs = [
            ("user", "schoolportal.core.modules.user.service", "UserService"),
            ("audit", "schoolportal.core.modules.audit.service", "AuditService"),
            ("session", "schoolportal.core.modules.session.service", "SessionService"),
            ("password_reset", "schoolportal.core.modules.password_reset.service", "PasswordResetService"),
            ("access", "schoolportal.core.modules.access.service", "AccessService"),
            ("message", "schoolportal.core.modules.message.service", "MessageService"),
            ("school", "schoolportal.core.modules.school.service", "SchoolService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(stores)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, stores, and all service instances."""

    config: Config
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    stores: Stores
    services: Services

    def __init__(self, config: Config, stores: Stores | None = None) -> None:
        """Initialize core with config and stores; MongoDB-backed stores unless provided."""
        self.config = config
        self.mongo_client = None
        if stores is None:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard", tz_aware=True)
            database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
            stores = Stores.from_database(database)
        self.stores = stores
        self.services = Services(stores)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Start all services on application startup."""
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close MongoDB connection on shutdown."""
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
