"""
Expense validation utilities.

Rejects malformed expense payloads before any token is minted or any vault
call is made. Bulk payloads are checked in full first: one bad record
rejects the whole batch.

Dependencies: expense_vault.core.exceptions, expense_vault.models.expense
System role: Expense request validation gate
"""

import math
from typing import Any

from expense_vault.core.exceptions import ExpenseValidationError
from expense_vault.models.expense import UPDATABLE_FIELDS

AMOUNT_ERROR = "Amount must be a non-negative number"
CATEGORY_ERROR = "Category must be a non-empty string"
DESCRIPTION_ERROR = "Description must be a non-empty string"
DATE_ERROR = "Date must be a non-empty string"
NOT_AN_OBJECT_ERROR = "Expense must be a JSON object"

# Long-form names accepted on input, stored under the collection's names
FIELD_ALIASES = {"category": "cat", "description": "desc"}


def normalize_expense(expense: dict[str, Any]) -> dict[str, Any]:
    """Map long-form field names onto `cat`/`desc` when the short form is absent."""
    normalized = dict(expense)
    for alias, canonical in FIELD_ALIASES.items():
        if canonical not in normalized and alias in normalized:
            normalized[canonical] = normalized.pop(alias)
    return normalized


def _is_amount(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value) and value >= 0
    except OverflowError:
        # Integers beyond float range
        return False


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_expense(expense: Any) -> str | None:
    """
    Check one expense record.

    Rules run in order and the first failure wins: amount, category,
    description, then date when one is supplied.

    Args:
        expense: Candidate record from the request body

    Returns:
        str | None: Failure reason, or None when the record is valid
    """
    if not isinstance(expense, dict):
        return NOT_AN_OBJECT_ERROR
    expense = normalize_expense(expense)

    if not _is_amount(expense.get("amount")):
        return AMOUNT_ERROR
    if not _is_text(expense.get("cat")):
        return CATEGORY_ERROR
    if not _is_text(expense.get("desc")):
        return DESCRIPTION_ERROR
    if "date" in expense and not _is_text(expense["date"]):
        return DATE_ERROR
    return None


def validate_expense_payload(payload: Any) -> list[dict[str, Any]]:
    """
    Validate a single record or a list of records for creation.

    Args:
        payload: Parsed JSON request body

    Returns:
        list[dict]: Normalized records, in request order

    Raises:
        ExpenseValidationError: On the first invalid record
    """
    is_bulk = isinstance(payload, list)
    expenses = payload if is_bulk else [payload]
    if not expenses:
        raise ExpenseValidationError("At least one expense is required")

    for index, expense in enumerate(expenses):
        error = validate_expense(expense)
        if error:
            raise ExpenseValidationError(error, index=index if is_bulk else None)
    return [normalize_expense(expense) for expense in expenses]


def validate_expense_changes(changes: Any) -> dict[str, Any]:
    """
    Validate a partial update; only the fields present are checked.

    Args:
        changes: Parsed JSON object with any of amount, cat, desc, date

    Returns:
        dict: The updatable fields that were supplied

    Raises:
        ExpenseValidationError: If nothing updatable is supplied or a field is invalid
    """
    if not isinstance(changes, dict):
        raise ExpenseValidationError(NOT_AN_OBJECT_ERROR)
    normalized = normalize_expense(changes)
    updates = {name: normalized[name] for name in UPDATABLE_FIELDS if name in normalized}
    if not updates:
        raise ExpenseValidationError(
            "At least one of amount, cat, desc or date must be provided"
        )

    if "amount" in updates and not _is_amount(updates["amount"]):
        raise ExpenseValidationError(AMOUNT_ERROR, field="amount")
    if "cat" in updates and not _is_text(updates["cat"]):
        raise ExpenseValidationError(CATEGORY_ERROR, field="cat")
    if "desc" in updates and not _is_text(updates["desc"]):
        raise ExpenseValidationError(DESCRIPTION_ERROR, field="desc")
    if "date" in updates and not _is_text(updates["date"]):
        raise ExpenseValidationError(DATE_ERROR, field="date")
    return updates


def validate_bulk_update(payload: Any) -> list[tuple[str, dict[str, Any]]]:
    """
    Validate a list of `{_id|id, ...changes}` items before any update runs.

    Returns:
        list[tuple[str, dict]]: (expense id, validated changes) pairs

    Raises:
        ExpenseValidationError: On the first invalid item
    """
    if not isinstance(payload, list) or not payload:
        raise ExpenseValidationError("Bulk update expects a non-empty array of expenses")

    items = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ExpenseValidationError(NOT_AN_OBJECT_ERROR, index=index)
        expense_id = item.get("_id") or item.get("id")
        if not _is_text(expense_id):
            raise ExpenseValidationError("Each update must carry an _id", field="_id", index=index)
        changes = {k: v for k, v in item.items() if k not in ("_id", "id")}
        try:
            items.append((expense_id, validate_expense_changes(changes)))
        except ExpenseValidationError as e:
            raise ExpenseValidationError(e.message, field=e.field, index=index) from e
    return items
