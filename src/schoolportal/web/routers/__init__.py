from schoolportal.web.routers.auth import router as auth_router
from schoolportal.web.routers.messages import router as messages_router
from schoolportal.web.routers.pages import router as pages_router
from schoolportal.web.routers.school import router as school_router
from schoolportal.web.routers.users import router as users_router

__all__ = [
    "auth_router",
    "messages_router",
    "pages_router",
    "school_router",
    "users_router",
]
