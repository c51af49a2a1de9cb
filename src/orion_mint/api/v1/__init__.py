"""Version 1 API endpoints."""

from .endpoints import (
    creators_router,
    mint_authorizations_router,
    system_router,
)

__all__ = [
    "creators_router",
    "mint_authorizations_router",
    "system_router",
]
