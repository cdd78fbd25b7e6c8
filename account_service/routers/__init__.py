"""API routers."""

from account_service.routers.auth import router as auth_router
from account_service.routers.users import router as users_router

__all__ = ["auth_router", "users_router"]
