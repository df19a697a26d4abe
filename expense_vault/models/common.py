"""
Common response models and utilities.

Generic message and error schemas shared by all routers.

Dependencies: pydantic
System role: Common API response structures
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response schema."""

    error: str = Field(description="Error message")
    message: str | None = Field(default=None, description="Guidance for the caller")
    details: Any | None = Field(default=None, description="Underlying failure reason")
    requiredPermissions: dict[str, bool] | None = Field(
        default=None, description="Capabilities the caller must grant"
    )


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str
