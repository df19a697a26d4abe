"""
Test suite for IdentifierLedger.

Covers append/remove persistence, restart reload, reconciliation pruning,
concurrent mutation and both persist-failure policies.

System role: Verification of the local record-id index
"""

import asyncio

import pytest

from expense_vault.core.exceptions import LedgerPersistenceError, RecordNotFoundError
from expense_vault.core.ledger import IdentifierLedger, LedgerPersistPolicy
from expense_vault.core.ledger_store import InMemoryLedgerStore, JsonFileLedgerStore


class TestAppend:
    """Test suite for IdentifierLedger.append."""

    async def test_append_should_persist_full_sequence(self, ledger, ledger_store) -> None:
        """Test every append writes the whole ordered list."""
        # Act
        await ledger.append("a")
        await ledger.append("b")

        # Assert
        assert ledger.ids == ["a", "b"]
        assert ledger_store.saved == ["a", "b"]
        assert ledger_store.write_count == 2

    async def test_append_should_survive_restart(self, tmp_path) -> None:
        """Test an appended id is present exactly once after reload."""
        # Arrange
        path = tmp_path / "expense-ids.json"
        first = IdentifierLedger(JsonFileLedgerStore(path))
        await first.load()
        await first.append("a")
        await first.append("b")

        # Act
        second = IdentifierLedger(JsonFileLedgerStore(path))
        loaded = await second.load()

        # Assert
        assert loaded == ["a", "b"]
        assert second.ids.count("b") == 1
        assert second.ids.index("b") == 1

    @pytest.mark.parametrize("bad_id", ["", None, 42])
    async def test_append_should_reject_invalid_ids(self, ledger, ledger_store, bad_id) -> None:
        """Test non-string or empty ids never reach the store."""
        with pytest.raises(ValueError):
            await ledger.append(bad_id)
        assert ledger_store.write_count == 0

    async def test_concurrent_appends_should_all_be_persisted(self, ledger, ledger_store) -> None:
        """Test interleaved appends from many handlers lose nothing."""
        # Act
        await asyncio.gather(*(ledger.append(f"id-{n}") for n in range(20)))

        # Assert
        assert len(ledger) == 20
        assert sorted(ledger_store.saved) == sorted(f"id-{n}" for n in range(20))


class TestRemove:
    """Test suite for IdentifierLedger.remove."""

    async def test_remove_should_drop_ids_and_persist_once(self) -> None:
        """Test batch removal writes a single time."""
        # Arrange
        store = InMemoryLedgerStore(["a", "b", "c", "d"])
        ledger = IdentifierLedger(store)
        await ledger.load()

        # Act
        removed = await ledger.remove(["b", "d"])

        # Assert
        assert removed == 2
        assert ledger.ids == ["a", "c"]
        assert store.saved == ["a", "c"]
        assert store.write_count == 1

    async def test_remove_unknown_id_should_not_persist(self, ledger, ledger_store) -> None:
        """Test removing nothing leaves storage untouched."""
        await ledger.append("a")

        removed = await ledger.remove(["zzz"])

        assert removed == 0
        assert ledger_store.write_count == 1


class TestReconcile:
    """Test suite for IdentifierLedger.reconcile_against."""

    async def test_reconcile_should_prune_unresolvable_ids(self) -> None:
        """Test ids that fail to fetch are reported and pruned in order."""
        # Arrange
        store = InMemoryLedgerStore(["a", "b", "c"])
        ledger = IdentifierLedger(store)
        await ledger.load()

        async def fetch(record_id: str) -> dict:
            if record_id == "b":
                raise RecordNotFoundError("Document not found: b", document_id="b")
            return {"_id": record_id}

        # Act
        result = await ledger.reconcile_against(fetch)

        # Assert
        assert result.payloads == [{"_id": "a"}, {"_id": "c"}]
        assert result.failed_ids == ["b"]
        assert result.failed_count == 1
        assert ledger.ids == ["a", "c"]
        assert store.saved == ["a", "c"]

    async def test_reconcile_should_prune_ids_whose_fetch_raises_any_error(self) -> None:
        """Test a non-vault exception from fetch still counts as an unresolvable id."""
        # Arrange
        store = InMemoryLedgerStore(["a", "b", "c"])
        ledger = IdentifierLedger(store)
        await ledger.load()

        async def fetch(record_id: str) -> dict:
            if record_id == "b":
                raise RuntimeError("malformed node answer")
            return {"_id": record_id}

        # Act
        result = await ledger.reconcile_against(fetch)

        # Assert
        assert result.failed_count == 1
        assert [p["_id"] for p in result.payloads] == ["a", "c"]
        assert ledger.ids == ["a", "c"]
        assert store.saved == ["a", "c"]

    async def test_reconcile_on_empty_ledger_should_not_fetch(self, ledger) -> None:
        """Test an empty ledger short-circuits without remote calls."""
        calls = []

        async def fetch(record_id: str) -> dict:
            calls.append(record_id)
            return {}

        result = await ledger.reconcile_against(fetch)

        assert calls == []
        assert result.payloads == []
        assert result.failed_count == 0

    async def test_reconcile_should_keep_ids_appended_while_fetching(self) -> None:
        """Test a create that lands mid-reconciliation is not lost by the prune."""
        # Arrange
        store = InMemoryLedgerStore(["a", "b", "c"])
        ledger = IdentifierLedger(store)
        await ledger.load()

        async def fetch(record_id: str) -> dict:
            if record_id == "a":
                await ledger.append("d")
            if record_id == "b":
                raise RecordNotFoundError("gone", document_id="b")
            return {"_id": record_id}

        # Act
        result = await ledger.reconcile_against(fetch)

        # Assert
        assert [p["_id"] for p in result.payloads] == ["a", "c"]
        assert ledger.ids == ["a", "c", "d"]
        assert store.saved == ["a", "c", "d"]

    async def test_reconcile_should_not_persist_when_everything_resolves(self) -> None:
        """Test a clean reconciliation does not rewrite storage."""
        store = InMemoryLedgerStore(["a", "b"])
        ledger = IdentifierLedger(store)
        await ledger.load()

        async def fetch(record_id: str) -> dict:
            return {"_id": record_id}

        result = await ledger.reconcile_against(fetch)

        assert result.failed_count == 0
        assert store.write_count == 0


class TestPersistPolicy:
    """Test suite for persistence failure handling."""

    async def test_fail_open_should_keep_in_memory_state(self) -> None:
        """Test a failed write under fail_open neither raises nor rolls back."""
        # Arrange
        store = InMemoryLedgerStore(fail_writes=True)
        ledger = IdentifierLedger(store, policy=LedgerPersistPolicy.FAIL_OPEN)

        # Act
        await ledger.append("a")

        # Assert
        assert ledger.ids == ["a"]
        assert store.saved is None

    async def test_fail_closed_should_roll_back_and_raise(self) -> None:
        """Test a failed write under fail_closed surfaces the error and undoes the append."""
        # Arrange
        store = InMemoryLedgerStore(fail_writes=True)
        ledger = IdentifierLedger(store, policy=LedgerPersistPolicy.FAIL_CLOSED)

        # Act / Assert
        with pytest.raises(LedgerPersistenceError):
            await ledger.append("a")
        assert ledger.ids == []

    async def test_fail_closed_should_roll_back_remove(self) -> None:
        """Test a failed removal under fail_closed restores the removed ids."""
        store = InMemoryLedgerStore(["a", "b"])
        ledger = IdentifierLedger(store, policy=LedgerPersistPolicy.FAIL_CLOSED)
        await ledger.load()
        store.fail_writes = True

        with pytest.raises(LedgerPersistenceError):
            await ledger.remove(["a"])
        assert ledger.ids == ["a", "b"]

    async def test_persist_should_write_current_sequence(self) -> None:
        """Test an explicit persist call saves the loaded ids."""
        store = InMemoryLedgerStore(["a"])
        ledger = IdentifierLedger(store)
        await ledger.load()

        await ledger.persist()

        assert store.write_count == 1
        assert store.saved == ["a"]
