"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_collection_id,
    get_expense_service,
    get_ledger,
    get_service_cache,
    get_token_issuer,
    get_vault_client_dependency,
)

__all__ = [
    "get_collection_id",
    "get_expense_service",
    "get_ledger",
    "get_service_cache",
    "get_token_issuer",
    "get_vault_client_dependency",
]
