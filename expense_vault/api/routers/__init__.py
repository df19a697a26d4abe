"""API routers."""

from .health import router as health_router
from .vault import permissions_router
from .vault import router as vault_router

__all__ = [
    "health_router",
    "permissions_router",
    "vault_router",
]
