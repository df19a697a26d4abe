"""
Durable storage for the identifier ledger.

A single JSON array of id strings, rewritten in full on every write.

Dependencies: json, pathlib (stdlib)
System role: Ledger persistence backends
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class LedgerStore(ABC):
    """Persistence backend for the ordered list of record ids."""

    @abstractmethod
    def read(self) -> list[str]:
        """Return the persisted ids, or an empty list when nothing usable is stored."""

    @abstractmethod
    def write(self, ids: list[str]) -> None:
        """Overwrite storage with the full id sequence."""


class JsonFileLedgerStore(LedgerStore):
    """Ledger stored as a pretty-printed JSON array in one file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> list[str]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "Ledger file unreadable, starting empty",
                extra={"path": str(self.path), "error": str(e)},
            )
            return []
        if not isinstance(data, list) or not all(isinstance(i, str) for i in data):
            logger.warning(
                "Ledger file does not hold an array of strings, starting empty",
                extra={"path": str(self.path)},
            )
            return []
        return data

    def write(self, ids: list[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Replace atomically so a crash mid-write never leaves a truncated file
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(ids, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class InMemoryLedgerStore(LedgerStore):
    """Process-local store, used for tests and throwaway dev runs."""

    def __init__(self, ids: list[str] | None = None, fail_writes: bool = False) -> None:
        self.saved: list[str] | None = list(ids) if ids is not None else None
        self.fail_writes = fail_writes
        self.write_count = 0

    def read(self) -> list[str]:
        return list(self.saved or [])

    def write(self, ids: list[str]) -> None:
        if self.fail_writes:
            raise OSError("ledger store is read-only")
        self.write_count += 1
        self.saved = list(ids)
