"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from expense_vault.configs.base import BaseSettings
from expense_vault.configs.ledger import LedgerSettings
from expense_vault.configs.vault import VaultSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    vault: VaultSettings = Field(default_factory=VaultSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from expense_vault.configs import get_settings
        settings = get_settings()
    """
    return Settings()
