"""Bot handlers module."""

from .admin import router as admin_router
from .arena import router as arena_router
from .common import router as common_router

__all__ = ["admin_router", "arena_router", "common_router"]
