"""
Logging helpers that keep secrets and record contents out of log output.

Dependencies: hashlib, logging (stdlib)
System role: Log value sanitizing
"""

import hashlib
import logging
from typing import Any

MAX_LOGGED_LENGTH = 200


def safe_log_value(value: Any, max_length: int = MAX_LOGGED_LENGTH) -> str:
    """
    Render a value for a log field.

    Lists and dicts are reduced to their size; expense payloads never reach
    the log verbatim.
    """
    if value is None:
        return "None"
    if isinstance(value, (list, tuple)):
        return f"{type(value).__name__}({len(value)} items)"
    if isinstance(value, dict):
        return f"dict({len(value)} keys)"
    text = value if isinstance(value, str) else repr(value)
    if len(text) > max_length:
        return f"{text[:max_length]}... (truncated, {len(text)} total)"
    return text


def token_fingerprint(token: str) -> str:
    """Short, non-reversible handle for a bearer token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context: Any,
) -> None:
    """
    Log an exception with its traceback and sanitized context fields.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Extra fields, passed through safe_log_value
    """
    fields = {key: safe_log_value(val) for key, val in context.items()}
    fields["error_type"] = type(exc).__name__
    fields["error_msg"] = safe_log_value(str(exc))
    logger.exception(message, extra=fields)
