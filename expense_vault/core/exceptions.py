"""
Exception hierarchy for the Expense Vault application.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class ExpenseVaultException(Exception):
    """Base exception for all Expense Vault application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(ExpenseVaultException):
    """Raised when required settings are missing or inconsistent at start-up."""


class ExpenseValidationError(ExpenseVaultException):
    """Raised when an expense payload fails validation."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            index: Position of the offending record in a bulk request
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        if index is not None:
            details["index"] = index
        self.field = field
        self.index = index
        super().__init__(message, details)


class VaultError(ExpenseVaultException):
    """Base exception for failures reported by the vault network."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vault error.

        Args:
            message: Error message
            operation: Vault operation that failed (create, read, update, ...)
            document_id: Document the operation targeted
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        if document_id:
            details["document_id"] = document_id
        self.operation = operation
        self.document_id = document_id
        super().__init__(message, details)


class PermissionDeniedError(VaultError):
    """Raised when the vault refuses an operation for lack of capabilities."""


class RecordNotFoundError(VaultError):
    """Raised when a document cannot be resolved in the vault."""


class VaultOperationError(VaultError):
    """Raised for any other vault failure (transport, malformed answer, ...)."""


class LedgerPersistenceError(ExpenseVaultException):
    """Raised when the identifier ledger cannot be written under a fail-closed policy."""
