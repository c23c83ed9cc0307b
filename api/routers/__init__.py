"""API Routers."""

from .health import router as health_router
from .auth import router as auth_router
from .profile import router as profile_router
from .settings import router as settings_router
from .tickets import router as tickets_router
from .admin import router as admin_router

__all__ = [
    "health_router",
    "auth_router",
    "profile_router",
    "settings_router",
    "tickets_router",
    "admin_router",
]
