"""
Identifier ledger configuration.

Dependencies: pydantic_settings
System role: Ledger persistence configuration
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from expense_vault.core.ledger import LedgerPersistPolicy


class LedgerSettings(BaseSettings):
    """Settings for the persisted list of created record ids."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    path: Path = Field(
        default=Path("expense-ids.json"),
        description="JSON file holding the array of created ids",
    )
    persist_policy: LedgerPersistPolicy = Field(
        default=LedgerPersistPolicy.FAIL_OPEN,
        description="fail_open keeps in-memory state on write errors, fail_closed rolls back and raises",
    )
