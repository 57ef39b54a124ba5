"""Web and API routers."""

from clubhouse.routers.api import router as api_router
from clubhouse.routers.auth import router as auth_router
from clubhouse.routers.membership import router as membership_router
from clubhouse.routers.messages import router as messages_router
from clubhouse.routers.users import router as users_router

__all__ = ["api_router", "auth_router", "membership_router", "messages_router", "users_router"]
