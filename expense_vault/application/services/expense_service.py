"""
Expense service orchestrator.

Coordinates expense lifecycle operations against the vault: one delegation
token per record per operation, ledger bookkeeping on create/delete, and
reconciliation when enumerating.

Dependencies: expense_vault.boundary, expense_vault.core
System role: Expense use case orchestration
"""

import logging
from typing import Any

from expense_vault.boundary.auth.delegation import DelegationTokenIssuer, VaultCommand
from expense_vault.boundary.vault.vault_client import AccessControl, VaultClient
from expense_vault.core.exceptions import (
    ExpenseVaultException,
    PermissionDeniedError,
    RecordNotFoundError,
)
from expense_vault.core.ledger import IdentifierLedger
from expense_vault.models.expense import ExpenseRecord, utc_timestamp

logger = logging.getLogger(__name__)


class ExpenseService:
    """Expense service orchestrator."""

    def __init__(
        self,
        vault: VaultClient,
        issuer: DelegationTokenIssuer,
        ledger: IdentifierLedger,
        collection_id: str,
    ) -> None:
        """
        Initialize expense service.

        Args:
            vault: Vault client acting as the user identity
            issuer: Delegation token issuer (builder -> user)
            ledger: Ledger of created record ids
            collection_id: Expense collection in the vault
        """
        self.vault = vault
        self.issuer = issuer
        self.ledger = ledger
        self.collection_id = collection_id

    @property
    def user_did(self) -> str:
        return self.issuer.audience_did

    @property
    def builder_did(self) -> str:
        return self.issuer.issuer_did

    async def create_expenses(
        self, expenses: list[dict[str, Any]]
    ) -> tuple[list[dict[str, Any]], list[str]]:
        """
        Write validated expenses one by one, each with its own create token.

        A failure stops the batch; records written before it stay tracked.

        Args:
            expenses: Validated, normalized expense payloads

        Returns:
            tuple: (written entries, new record ids)

        Raises:
            PermissionDeniedError: If the vault refuses the write
            VaultError: For any other vault failure
        """
        written: list[dict[str, Any]] = []
        new_ids: list[str] = []
        acl = AccessControl(grantee=self.builder_did, read=True, write=True, execute=True)

        for expense in expenses:
            record = ExpenseRecord.from_input(expense).to_document()
            delegation = self.issuer.mint(VaultCommand.CREATE)

            upload_results = await self.vault.create_data(
                delegation,
                owner=self.user_did,
                collection=self.collection_id,
                data=[record],
                acl=acl,
            )
            await self.ledger.append(record["_id"])
            new_ids.append(record["_id"])
            written.append(
                {
                    "data": record,
                    "uploadResults": upload_results,
                    "permissions": {"granted": True, "grantee": self.builder_did},
                }
            )
            logger.info("Expense written", extra={"expense_id": record["_id"]})

        return written, new_ids

    async def read_one(self, expense_id: str) -> dict[str, Any]:
        """
        Fetch one expense by id.

        Raises:
            RecordNotFoundError: If the vault cannot resolve the id
        """
        delegation = self.issuer.mint(VaultCommand.READ)
        return await self.vault.read_data(delegation, self.collection_id, expense_id)

    async def read_all(self) -> dict[str, Any]:
        """
        Enumerate every tracked expense, pruning ids that no longer resolve.

        Returns:
            dict: totalRecords, data, failedCount, note
        """
        if len(self.ledger) == 0:
            return {"totalRecords": 0, "data": [], "failedCount": 0, "note": "No expenses found"}

        logger.info("Reading tracked expenses", extra={"record_count": len(self.ledger)})
        result = await self.ledger.reconcile_against(self.read_one)

        note = f"Showing {len(result.payloads)} expenses."
        if result.failed_count:
            note += f" {result.failed_count} expenses could not be read."
        return {
            "totalRecords": len(result.payloads),
            "data": result.payloads,
            "failedCount": result.failed_count,
            "note": note,
        }

    async def update_expense(self, expense_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Apply validated field changes and return the stored record.

        Args:
            expense_id: Expense document id
            changes: Validated subset of amount, cat, desc, date

        Returns:
            dict: Record as read back from the vault
        """
        update = {**changes, "updatedAt": utc_timestamp()}
        delegation = self.issuer.mint(VaultCommand.UPDATE)
        await self.vault.update_data(delegation, self.collection_id, expense_id, update)
        logger.info(
            "Expense updated",
            extra={"expense_id": expense_id, "fields": sorted(changes)},
        )
        return await self.read_one(expense_id)

    async def update_expenses(self, items: list[tuple[str, dict[str, Any]]]) -> list[dict[str, Any]]:
        """Update several expenses in order; the first failure stops the batch."""
        return [await self.update_expense(expense_id, changes) for expense_id, changes in items]

    async def delete_expense(self, expense_id: str) -> None:
        """
        Delete an expense remotely and stop tracking it.

        A remote not-found still untracks the id before re-raising.

        Raises:
            RecordNotFoundError: If the vault has no such document
            PermissionDeniedError: If the vault refuses the delete
        """
        delegation = self.issuer.mint(VaultCommand.DELETE)
        try:
            await self.vault.delete_data(delegation, self.collection_id, expense_id)
        except RecordNotFoundError:
            await self.ledger.remove([expense_id])
            raise
        await self.ledger.remove([expense_id])
        logger.info("Expense deleted", extra={"expense_id": expense_id})

    async def delete_expenses(self, expense_ids: list[str]) -> tuple[list[str], list[dict[str, str]]]:
        """
        Delete several expenses, collecting per-id failures.

        Returns:
            tuple: (deleted ids, [{id, error}] for the rest)

        Raises:
            PermissionDeniedError: The vault refused a delete; the batch stops
        """
        deleted: list[str] = []
        failed: list[dict[str, str]] = []
        for expense_id in expense_ids:
            try:
                await self.delete_expense(expense_id)
                deleted.append(expense_id)
            except PermissionDeniedError:
                raise
            except ExpenseVaultException as e:
                logger.warning(
                    "Bulk delete skipped expense",
                    extra={"expense_id": expense_id, "error": e.message},
                )
                failed.append({"id": expense_id, "error": e.message})
        return deleted, failed

    async def remove_expense(self, expense_id: str) -> None:
        """
        Stop tracking an expense without deleting it remotely.

        Raises:
            RecordNotFoundError: If the id is not in the ledger
        """
        if not await self.ledger.remove([expense_id]):
            raise RecordNotFoundError(
                f"Expense is not tracked: {expense_id}", operation="remove", document_id=expense_id
            )
        logger.info("Expense untracked", extra={"expense_id": expense_id})

    async def remove_expenses(self, expense_ids: list[str]) -> int:
        """Stop tracking several expenses; returns how many ledger entries went away."""
        removed = await self.ledger.remove(expense_ids)
        logger.info("Expenses untracked", extra={"requested": len(expense_ids), "removed": removed})
        return removed

    async def grant_access(self, document_id: str) -> dict[str, Any]:
        """Grant the application read access on a document."""
        delegation = self.issuer.mint(VaultCommand.GRANT)
        return await self.vault.grant_access(
            delegation,
            self.collection_id,
            document_id,
            AccessControl(grantee=self.builder_did, read=True, write=False, execute=False),
        )

    async def revoke_access(self, document_id: str) -> dict[str, Any]:
        """Revoke every capability the application holds on a document."""
        delegation = self.issuer.mint(VaultCommand.REVOKE)
        return await self.vault.revoke_access(
            delegation, self.collection_id, document_id, self.builder_did
        )
