"""API endpoint modules for version 1."""

from .creators import router as creators_router
from .mint_authorizations import router as mint_authorizations_router
from .system import router as system_router

__all__ = [
    "creators_router",
    "mint_authorizations_router",
    "system_router",
]
