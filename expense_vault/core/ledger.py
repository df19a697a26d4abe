"""
Identifier ledger.

The vault network is only queryable per document, so the application keeps
its own ordered list of the record ids it has created. The list survives
restarts through a LedgerStore and heals itself when remote records no
longer resolve.

Dependencies: asyncio, expense_vault.core.ledger_store, expense_vault.core.exceptions
System role: Local index of remotely stored expense records
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable

from expense_vault.core.exceptions import LedgerPersistenceError
from expense_vault.core.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], Awaitable[Any]]


class LedgerPersistPolicy(str, Enum):
    """What to do when the ledger cannot be written to durable storage."""

    FAIL_OPEN = "fail_open"
    FAIL_CLOSED = "fail_closed"


@dataclass
class ReconciliationResult:
    """Outcome of checking every known id against the vault."""

    payloads: list[Any] = field(default_factory=list)
    failed_ids: list[str] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failed_ids)


class IdentifierLedger:
    """
    Ordered, persisted list of record ids created in the vault.

    Every mutation and its persist run under one asyncio.Lock, so concurrent
    request handlers cannot interleave a write between another handler's
    mutation and its save.
    """

    def __init__(
        self,
        store: LedgerStore,
        policy: LedgerPersistPolicy = LedgerPersistPolicy.FAIL_OPEN,
    ) -> None:
        """
        Initialize an empty ledger bound to a store.

        Args:
            store: Durable backend the sequence is written to
            policy: Behaviour on persistence failure
        """
        self._store = store
        self._policy = policy
        self._ids: list[str] = []
        self._lock = asyncio.Lock()

    @property
    def ids(self) -> list[str]:
        """Snapshot of the known ids in creation order."""
        return list(self._ids)

    @property
    def policy(self) -> LedgerPersistPolicy:
        return self._policy

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    async def load(self) -> list[str]:
        """
        Replace the in-memory sequence with the persisted one.

        A missing or unparsable store yields an empty ledger (first run).

        Returns:
            list[str]: The loaded ids
        """
        async with self._lock:
            ids = await asyncio.to_thread(self._store.read)
            self._ids = list(ids)
        logger.info("Ledger loaded", extra={"record_count": len(ids)})
        return list(ids)

    async def append(self, record_id: str) -> None:
        """
        Track a newly created record id and persist the full sequence.

        Args:
            record_id: Id returned by a successful vault create

        Raises:
            ValueError: If record_id is not a non-empty string
            LedgerPersistenceError: If persisting fails under FAIL_CLOSED
        """
        if not isinstance(record_id, str) or not record_id:
            raise ValueError("Ledger ids must be non-empty strings")

        async with self._lock:
            previous = list(self._ids)
            self._ids.append(record_id)
            await self._persist_locked(previous)

    async def remove(self, record_ids: Iterable[str]) -> int:
        """
        Drop every occurrence of the given ids in one batch and persist once.

        Args:
            record_ids: Ids to forget

        Returns:
            int: Number of entries removed (0 means nothing was persisted)
        """
        targets = set(record_ids)
        async with self._lock:
            previous = list(self._ids)
            self._ids = [i for i in self._ids if i not in targets]
            removed = len(previous) - len(self._ids)
            if removed:
                await self._persist_locked(previous)
        return removed

    async def reconcile_against(self, fetch: FetchFn) -> ReconciliationResult:
        """
        Resolve every known id through `fetch` and prune the ones that fail.

        Fetches run without holding the lock. The pruning pass filters the
        current sequence, so ids appended while fetching are kept.

        Args:
            fetch: Coroutine function resolving one id to its payload

        Returns:
            ReconciliationResult: Payloads of resolved ids plus the failed ids
        """
        result = ReconciliationResult()
        snapshot = self.ids
        if not snapshot:
            return result

        for record_id in snapshot:
            try:
                result.payloads.append(await fetch(record_id))
            except Exception as e:
                # Any failure counts as remote absence, transient or not
                logger.warning(
                    "Ledger id did not resolve",
                    extra={
                        "record_id": record_id,
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                )
                result.failed_ids.append(record_id)

        if result.failed_ids:
            removed = await self.remove(result.failed_ids)
            logger.info(
                "Pruned unresolvable ledger ids",
                extra={"pruned": removed, "remaining": len(self._ids)},
            )
        return result

    async def persist(self) -> None:
        """Write the current sequence to the store."""
        async with self._lock:
            await self._persist_locked(None)

    async def _persist_locked(self, previous: list[str] | None) -> None:
        try:
            await asyncio.to_thread(self._store.write, list(self._ids))
        except Exception as e:
            if self._policy is LedgerPersistPolicy.FAIL_CLOSED:
                if previous is not None:
                    self._ids = previous
                logger.error("Ledger persist failed, mutation rolled back", extra={"error": str(e)})
                raise LedgerPersistenceError(
                    "Failed to persist expense id ledger", details={"error": str(e)}
                ) from e
            logger.error(
                "Ledger persist failed, keeping in-memory state",
                extra={"error": str(e), "record_count": len(self._ids)},
            )
