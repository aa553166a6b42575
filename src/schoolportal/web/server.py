from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolportal.app import App
from schoolportal.config import Config
from schoolportal.errors import UserError
from schoolportal.web.error_handlers import general_exception_handler, user_error_handler
from schoolportal.web.openapi import set_custom_openapi
from schoolportal.web.routers import (
    auth_router,
    messages_router,
    pages_router,
    school_router,
    users_router,
)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="School Portal API",
        lifespan=lifespan,
    )
    app.state.app = app_instance
    app.state.config = config

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    app.include_router(pages_router)
    app.include_router(auth_router, prefix="/api")
    app.include_router(messages_router, prefix="/api")
    app.include_router(school_router, prefix="/api")
    app.include_router(users_router, prefix="/api")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
