"""
Vault client factory for selecting between in-memory (dev) and nilDB (prod).

Depends on VAULT_BACKEND environment variable.
Provides consistent interface regardless of underlying implementation.

Dependencies: expense_vault.boundary.vault, expense_vault.configs
System role: Vault client instantiation and selection
"""

import logging

from expense_vault.boundary.vault.memory_vault import InMemoryVaultClient
from expense_vault.boundary.vault.nildb_vault import NilDBVaultClient
from expense_vault.boundary.vault.vault_client import VaultClient
from expense_vault.configs.vault import VaultSettings
from expense_vault.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def get_vault_client(settings: VaultSettings) -> VaultClient:
    """
    Factory function to get vault client based on configuration.

    Args:
        settings: Vault settings

    Returns:
        InMemoryVaultClient or NilDBVaultClient: Configured vault client

    Raises:
        ConfigurationError: If VAULT_BACKEND is invalid
    """
    backend = settings.backend.lower()

    if backend == "memory":
        logger.info(f"{__name__}:get_vault_client - Creating in-memory vault (local dev mode)")
        return InMemoryVaultClient()

    elif backend == "nildb":
        logger.info(
            f"{__name__}:get_vault_client - Creating nilDB vault client (production mode)",
            extra={"node_count": len(settings.node_urls)},
        )
        return NilDBVaultClient(
            node_urls=settings.node_urls,
            timeout=settings.request_timeout,
            init_attempts=settings.init_attempts,
        )

    else:
        raise ConfigurationError(
            f"Invalid VAULT_BACKEND: {backend}. "
            f"Must be 'memory' (dev) or 'nildb' (production)."
        )
