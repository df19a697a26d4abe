"""
Core business logic module.

Contains the identifier ledger, its persistence backends and the exception
hierarchy. All domain-specific logic owned by this application resides here.
"""

from expense_vault.core.exceptions import (
    ConfigurationError,
    ExpenseValidationError,
    ExpenseVaultException,
    LedgerPersistenceError,
    PermissionDeniedError,
    RecordNotFoundError,
    VaultError,
    VaultOperationError,
)
from expense_vault.core.ledger import IdentifierLedger, LedgerPersistPolicy, ReconciliationResult
from expense_vault.core.ledger_store import InMemoryLedgerStore, JsonFileLedgerStore, LedgerStore

__all__ = [
    # Exceptions
    "ConfigurationError",
    "ExpenseValidationError",
    "ExpenseVaultException",
    "LedgerPersistenceError",
    "PermissionDeniedError",
    "RecordNotFoundError",
    "VaultError",
    "VaultOperationError",
    # Ledger
    "IdentifierLedger",
    "InMemoryLedgerStore",
    "JsonFileLedgerStore",
    "LedgerPersistPolicy",
    "LedgerStore",
    "ReconciliationResult",
]
