"""
Expense vault API endpoints.

Routes:
- POST /api/vault/write - Create expense(s)
- GET /api/vault/read - Get all expenses
- GET /api/vault/read/{id} - Get expense by ID
- PUT /api/vault/update/{id} - Update expense by ID
- POST /api/vault/update - Bulk update expenses
- DELETE /api/vault/delete/{id} - Delete expense by ID
- POST /api/vault/delete - Bulk delete expenses
- DELETE /api/vault/remove/{id} - Stop tracking expense by ID
- POST /api/vault/remove-bulk - Stop tracking several expenses

Dependencies: expense_vault.application.services, expense_vault.models
System role: Expense CRUD HTTP API
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from expense_vault.api.deps import get_expense_service
from expense_vault.application.services import ExpenseService
from expense_vault.models.expense import (
    BulkDeleteExpensesResponse,
    BulkIdsRequest,
    BulkRemoveExpensesResponse,
    BulkUpdateExpensesResponse,
    DeleteExpenseResponse,
    ReadExpenseResponse,
    ReadExpensesResponse,
    RemoveExpenseResponse,
    UpdateExpenseResponse,
    WriteExpensesResponse,
)

from .vault_error_handling import handle_vault_errors
from .vault_validators import (
    validate_bulk_update,
    validate_expense_changes,
    validate_expense_payload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vault", tags=["vault"])


@router.post("/write", response_model=WriteExpensesResponse, status_code=status.HTTP_201_CREATED)
@handle_vault_errors("Failed to write expense data")
async def write_expenses(
    payload: Any = Body(...),
    expense_service: ExpenseService = Depends(get_expense_service),
) -> WriteExpensesResponse:
    """
    Create one expense or an array of expenses.

    Every record is validated before the first write.

    Args:
        payload: Expense object or array of expense objects
        expense_service: Injected ExpenseService

    Returns:
        WriteExpensesResponse: Written records and their new ids

    Raises:
        400: Invalid record
        403: Vault refused the write
        500: Write failed
    """
    expenses = validate_expense_payload(payload)

    logger.info("Writing expenses", extra={"count": len(expenses)})
    written, new_ids = await expense_service.create_expenses(expenses)

    return WriteExpensesResponse(
        message="Expense(s) written successfully",
        dataWritten=written,
        createdIds=new_ids,
    )


@router.get("/read", response_model=ReadExpensesResponse)
@handle_vault_errors("Failed to read expense data")
async def read_expenses(
    expense_service: ExpenseService = Depends(get_expense_service),
) -> ReadExpensesResponse:
    """
    Read every tracked expense; ids that no longer resolve are untracked.

    Args:
        expense_service: Injected ExpenseService

    Returns:
        ReadExpensesResponse: Records, total and failed counts
    """
    result = await expense_service.read_all()

    logger.info(
        "Expenses read",
        extra={"total": result["totalRecords"], "failed": result["failedCount"]},
    )
    return ReadExpensesResponse(**result)


@router.get("/read/{expense_id}", response_model=ReadExpenseResponse)
@handle_vault_errors(
    "Expense not found",
    fallback_status=status.HTTP_404_NOT_FOUND,
    map_permission_denied=False,
)
async def read_expense(
    expense_id: str,
    expense_service: ExpenseService = Depends(get_expense_service),
) -> ReadExpenseResponse:
    """
    Read one expense by id.

    Raises:
        404: Any failure to resolve the document
    """
    data = await expense_service.read_one(expense_id)
    return ReadExpenseResponse(data=data)


@router.put("/update/{expense_id}", response_model=UpdateExpenseResponse)
@handle_vault_errors("Failed to update expense")
async def update_expense(
    expense_id: str,
    payload: Any = Body(...),
    expense_service: ExpenseService = Depends(get_expense_service),
) -> UpdateExpenseResponse:
    """
    Update the supplied fields of one expense.

    Raises:
        400: Invalid fields
        403: Vault refused the update
        404: Expense not found
        500: Update failed
    """
    changes = validate_expense_changes(payload)

    logger.info("Updating expense", extra={"expense_id": expense_id, "fields": sorted(changes)})
    data = await expense_service.update_expense(expense_id, changes)

    return UpdateExpenseResponse(message="Expense updated successfully", data=data)


@router.post("/update", response_model=BulkUpdateExpensesResponse)
@handle_vault_errors("Failed to update expenses")
async def update_expenses(
    payload: Any = Body(...),
    expense_service: ExpenseService = Depends(get_expense_service),
) -> BulkUpdateExpensesResponse:
    """
    Update several expenses; every item is validated before the first update.

    Args:
        payload: Array of objects carrying `_id` and the fields to change
        expense_service: Injected ExpenseService
    """
    items = validate_bulk_update(payload)

    logger.info("Bulk updating expenses", extra={"count": len(items)})
    updated = await expense_service.update_expenses(items)

    return BulkUpdateExpensesResponse(
        message="Expense(s) updated successfully",
        updated=updated,
        updatedIds=[expense_id for expense_id, _ in items],
    )


@router.delete("/delete/{expense_id}", response_model=DeleteExpenseResponse)
@handle_vault_errors("Failed to delete expense")
async def delete_expense(
    expense_id: str,
    expense_service: ExpenseService = Depends(get_expense_service),
) -> DeleteExpenseResponse:
    """
    Delete one expense from the vault and stop tracking it.

    Raises:
        403: Vault refused the delete
        404: Expense not found (it is untracked anyway)
        500: Delete failed
    """
    await expense_service.delete_expense(expense_id)
    return DeleteExpenseResponse(message="Expense deleted successfully", deletedId=expense_id)


@router.post("/delete", response_model=BulkDeleteExpensesResponse)
@handle_vault_errors("Failed to delete expenses")
async def delete_expenses(
    request: BulkIdsRequest,
    expense_service: ExpenseService = Depends(get_expense_service),
) -> BulkDeleteExpensesResponse:
    """
    Delete several expenses; ids that fail are reported, not fatal.

    Args:
        request: BulkIdsRequest with ids
        expense_service: Injected ExpenseService
    """
    logger.info("Bulk deleting expenses", extra={"count": len(request.ids)})
    deleted, failed = await expense_service.delete_expenses(request.ids)

    return BulkDeleteExpensesResponse(
        message=f"{len(deleted)} expense(s) deleted",
        deletedIds=deleted,
        failed=failed,
    )


@router.delete("/remove/{expense_id}", response_model=RemoveExpenseResponse)
@handle_vault_errors("Failed to remove expense")
async def remove_expense(
    expense_id: str,
    expense_service: ExpenseService = Depends(get_expense_service),
) -> RemoveExpenseResponse:
    """
    Stop tracking one expense; the vault record is left untouched.

    Raises:
        404: Expense id is not tracked
    """
    await expense_service.remove_expense(expense_id)
    return RemoveExpenseResponse(message="Expense removed from tracking", removedId=expense_id)


@router.post("/remove-bulk", response_model=BulkRemoveExpensesResponse)
@handle_vault_errors("Failed to remove expenses")
async def remove_expenses(
    request: BulkIdsRequest,
    expense_service: ExpenseService = Depends(get_expense_service),
) -> BulkRemoveExpensesResponse:
    """Stop tracking several expenses."""
    removed = await expense_service.remove_expenses(request.ids)
    return BulkRemoveExpensesResponse(
        message=f"{removed} expense(s) removed from tracking",
        removedCount=removed,
    )
