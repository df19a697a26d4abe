"""
Vault boundary modules.

Exports: VaultClient, AccessControl, InMemoryVaultClient, NilDBVaultClient, get_vault_client
"""

from .memory_vault import InMemoryVaultClient
from .nildb_vault import NilDBVaultClient
from .vault_client import AccessControl, VaultClient
from .vault_factory import get_vault_client

__all__ = [
    "AccessControl",
    "InMemoryVaultClient",
    "NilDBVaultClient",
    "VaultClient",
    "get_vault_client",
]
