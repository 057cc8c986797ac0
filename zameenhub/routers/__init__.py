"""
API route handlers for the ZameenHub API.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .favorites import router as favorites_router
from .profiles import router as profiles_router
from .admin import router as admin_router
from .notifications import router as notifications_router

__all__ = [
    "auth_router",
    "properties_router",
    "favorites_router",
    "profiles_router",
    "admin_router",
    "notifications_router",
]
