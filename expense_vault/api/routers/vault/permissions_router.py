"""
Document permission API endpoints.

Routes:
- POST /api/vault/permissions/grant - Grant read access to the application
- POST /api/vault/permissions/revoke - Revoke the application's access

Dependencies: expense_vault.application.services, expense_vault.models.permissions
System role: Document ACL HTTP API
"""

import logging

from fastapi import APIRouter, Depends

from expense_vault.api.deps import get_expense_service
from expense_vault.application.services import ExpenseService
from expense_vault.models.permissions import PermissionRequest, PermissionResponse

from .vault_error_handling import handle_vault_errors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vault/permissions", tags=["permissions"])


@router.post("/grant", response_model=PermissionResponse)
@handle_vault_errors("Failed to grant access", map_permission_denied=False, map_not_found=False)
async def grant_access(
    request: PermissionRequest,
    expense_service: ExpenseService = Depends(get_expense_service),
) -> PermissionResponse:
    """
    Grant the application read access on a document.

    Raises:
        500: Grant failed
    """
    logger.info("Granting access", extra={"document_id": request.documentId})
    result = await expense_service.grant_access(request.documentId)
    return PermissionResponse(message="Access granted successfully", result=result)


@router.post("/revoke", response_model=PermissionResponse)
@handle_vault_errors("Failed to revoke access", map_permission_denied=False, map_not_found=False)
async def revoke_access(
    request: PermissionRequest,
    expense_service: ExpenseService = Depends(get_expense_service),
) -> PermissionResponse:
    """
    Revoke the application's access on a document.

    Raises:
        500: Revoke failed
    """
    logger.info("Revoking access", extra={"document_id": request.documentId})
    result = await expense_service.revoke_access(request.documentId)
    return PermissionResponse(message="Access revoked successfully", result=result)
