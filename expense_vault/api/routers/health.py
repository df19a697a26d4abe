"""
Health check API endpoint.

Routes: GET /health

Dependencies: expense_vault.models.common
System role: Liveness probe HTTP API
"""

from fastapi import APIRouter

from expense_vault.models.common import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check."""
    return HealthResponse(status="OK", message="Expense Tracker API Server is running")
