"""
Permission domain models and schemas.

Request/response schemas for document ACL grants and revocations.

Dependencies: pydantic
System role: Permission API contracts
"""

from typing import Any

from pydantic import BaseModel, Field


class PermissionRequest(BaseModel):
    """Request schema for granting or revoking access on a document."""

    documentId: str = Field(..., min_length=1, description="Expense document id")


class PermissionResponse(BaseModel):
    """Response schema for ACL operations."""

    message: str
    result: dict[str, Any]
