"""
Vault error handling utilities.

Provides a decorator that maps domain and vault exceptions onto JSON error
bodies (`error`, plus `details` where available) for vault endpoints.

Dependencies: fastapi, expense_vault.core.exceptions, expense_vault.observability
System role: Error-to-HTTP-status mapping for vault routes
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import status
from fastapi.responses import JSONResponse

from expense_vault.core.exceptions import (
    ExpenseValidationError,
    ExpenseVaultException,
    PermissionDeniedError,
    RecordNotFoundError,
)
from expense_vault.models.common import ErrorResponse
from expense_vault.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])

REQUIRED_PERMISSIONS = {"read": True, "write": True, "execute": True}
PERMISSION_DENIED_MESSAGE = (
    "The app needs permission to create expenses on your behalf. Please grant access first."
)


def error_response(status_code: int, error: str, **fields: Any) -> JSONResponse:
    """Build a JSON error response, omitting empty fields."""
    body = ErrorResponse(error=error, **fields).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def permission_denied_response(e: PermissionDeniedError) -> JSONResponse:
    return error_response(
        status.HTTP_403_FORBIDDEN,
        "Permission denied",
        message=PERMISSION_DENIED_MESSAGE,
        details=e.message,
        requiredPermissions=REQUIRED_PERMISSIONS,
    )


def handle_vault_errors(
    failure_message: str,
    fallback_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    map_permission_denied: bool = True,
    map_not_found: bool = True,
) -> Callable[[F], F]:
    """
    Decorator to turn vault-related errors into JSON error responses.

    This centralizes:
    - Logging of errors with context
    - Mapping specific exceptions to HTTP status codes
    - Ensuring uniform error response formats

    Args:
        failure_message: `error` text for failures without a dedicated status
        fallback_status: Status for those failures
        map_permission_denied: Answer 403 with the required-permissions payload
        map_not_found: Answer 404 for unresolvable documents
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)

            except ExpenseValidationError as e:
                logger.warning(
                    "Invalid expense request",
                    extra={"error": e.message, "field": e.field, "index": e.index},
                )
                return error_response(
                    status.HTTP_400_BAD_REQUEST, e.message, details=e.details or None
                )

            except PermissionDeniedError as e:
                if not map_permission_denied:
                    logger.error(failure_message, extra={"error": e.message})
                    return error_response(fallback_status, failure_message, details=e.message)
                logger.warning(
                    "Vault permission denied",
                    extra={"error": e.message, "operation": e.operation},
                )
                return permission_denied_response(e)

            except RecordNotFoundError as e:
                if not map_not_found:
                    logger.error(failure_message, extra={"error": e.message})
                    return error_response(fallback_status, failure_message, details=e.message)
                logger.warning(
                    "Expense not found",
                    extra={"error": e.message, "expense_id": e.document_id},
                )
                return error_response(
                    status.HTTP_404_NOT_FOUND, "Expense not found", details=e.message
                )

            except ExpenseVaultException as e:
                logger.error(failure_message, extra={"error": str(e)})
                return error_response(fallback_status, failure_message, details=e.message)

            except Exception as e:
                log_exception_with_context(
                    logger, f"Unexpected failure: {failure_message}", e, endpoint=func.__name__
                )
                return error_response(fallback_status, failure_message, details=str(e))

        return wrapper  # type: ignore

    return decorator
