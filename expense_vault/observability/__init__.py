"""
Observability module.

Provides structured logging, correlation ID tracking and request logging
middleware.
"""

from expense_vault.observability.correlation import get_correlation_id, set_correlation_id
from expense_vault.observability.logger import configure_logging

__all__ = ["configure_logging", "get_correlation_id", "set_correlation_id"]
