"""API routers."""

from storytime.api.auth import router as auth_router
from storytime.api.generation import router as generation_router
from storytime.api.health import router as health_router
from storytime.api.profiles import router as profiles_router
from storytime.api.stories import router as stories_router

__all__ = [
    "auth_router",
    "generation_router",
    "health_router",
    "profiles_router",
    "stories_router",
]
