"""
Expense domain models and schemas.

Stored record shape, vault collection schema and request/response schemas
for expense operations. Field names follow the vault collection schema
(`_id`, `cat`, `desc`, camelCase timestamps).

Dependencies: pydantic
System role: Expense API contracts
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UPDATABLE_FIELDS = ("amount", "cat", "desc", "date")


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ExpenseRecord(BaseModel):
    """An expense as stored in the vault."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="_id")
    amount: int | float
    cat: str
    desc: str
    date: str = Field(default_factory=utc_timestamp)
    createdAt: str = Field(default_factory=utc_timestamp)
    updatedAt: str = Field(default_factory=utc_timestamp)

    @classmethod
    def from_input(cls, expense: dict[str, Any]) -> "ExpenseRecord":
        """Build a new record from a validated, normalized request payload."""
        now = utc_timestamp()
        return cls(
            amount=expense["amount"],
            cat=expense["cat"],
            desc=expense["desc"],
            date=expense.get("date") or now,
            createdAt=now,
            updatedAt=now,
        )

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def expense_collection_schema(collection_id: str, name: str) -> dict[str, Any]:
    """Owned collection definition registered with the vault at start-up."""
    return {
        "_id": collection_id,
        "type": "owned",
        "name": name,
        "schema": {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "type": "array",
            "uniqueItems": True,
            "items": {
                "type": "object",
                "properties": {
                    "_id": {"type": "string", "format": "uuid"},
                    "amount": {"type": "number", "minimum": 0},
                    "cat": {"type": "string"},
                    "desc": {"type": "string"},
                    "date": {"type": "string", "format": "date-time"},
                    "createdAt": {"type": "string", "format": "date-time"},
                    "updatedAt": {"type": "string", "format": "date-time"},
                },
                "required": ["_id", "amount", "cat", "desc"],
            },
        },
    }


class ExpensePermissions(BaseModel):
    """ACL granted to the application on a written record."""

    granted: bool
    grantee: str


class WrittenExpense(BaseModel):
    """One record written to the vault."""

    data: dict[str, Any]
    uploadResults: dict[str, Any]
    permissions: ExpensePermissions


class WriteExpensesResponse(BaseModel):
    """Response schema for expense creation."""

    message: str
    dataWritten: list[WrittenExpense]
    createdIds: list[str]


class ReadExpensesResponse(BaseModel):
    """Response schema for enumerating all known expenses."""

    totalRecords: int
    data: list[dict[str, Any]]
    failedCount: int = 0
    note: str


class ReadExpenseResponse(BaseModel):
    """Response schema for a single expense."""

    data: dict[str, Any]


class UpdateExpenseResponse(BaseModel):
    """Response schema for a single expense update."""

    message: str
    data: dict[str, Any]


class BulkUpdateExpensesResponse(BaseModel):
    """Response schema for bulk expense updates."""

    message: str
    updated: list[dict[str, Any]]
    updatedIds: list[str]


class BulkIdsRequest(BaseModel):
    """Request schema carrying a list of expense ids."""

    ids: list[str] = Field(..., min_length=1, description="Expense document ids")


class DeleteExpenseResponse(BaseModel):
    """Response schema for deleting one expense."""

    message: str
    deletedId: str


class FailedExpenseOperation(BaseModel):
    """An id that could not be processed in a bulk request."""

    id: str
    error: str


class BulkDeleteExpensesResponse(BaseModel):
    """Response schema for bulk deletes."""

    message: str
    deletedIds: list[str]
    failed: list[FailedExpenseOperation] = Field(default_factory=list)


class RemoveExpenseResponse(BaseModel):
    """Response schema for untracking one expense."""

    message: str
    removedId: str


class BulkRemoveExpensesResponse(BaseModel):
    """Response schema for untracking several expenses."""

    message: str
    removedCount: int
