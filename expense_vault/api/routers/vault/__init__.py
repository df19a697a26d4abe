"""
Vault router package.

Exports the routers for expense and permission endpoints.
"""

from .permissions_router import router as permissions_router
from .vault_router import router

__all__ = ["permissions_router", "router"]
