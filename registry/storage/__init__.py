# registry/storage/__init__.py
"""
Storage backends — the durable substrate that committed ledger transitions are written to.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Set
from pathlib import Path
from registry.core.types import Record


class StorageBackend(ABC):
    """Abstract base for all persistent storage implementations. All state is namespaced by ledger name."""

    @abstractmethod
    def append_record(self, ledger: str, record: Record) -> None:
        pass

    @abstractmethod
    def mark_revoked(self, ledger: str, record_id: bytes) -> None:
        pass

    @abstractmethod
    def save_owner(self, ledger: str, owner: str) -> None:
        pass

    @abstractmethod
    def set_writer(self, ledger: str, identity: str, authorized: bool) -> None:
        pass

    @abstractmethod
    def load_owner(self, ledger: str) -> Optional[str]:
        pass

    @abstractmethod
    def load_writers(self, ledger: str) -> Set[str]:
        pass

    @abstractmethod
    def load_records(self, ledger: str) -> List[Record]:
        """All records of the ledger in insertion order."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass


def create_storage(uri: str) -> StorageBackend:
    if uri.startswith("sqlite://"):
        from .sqlite import SQLiteStorage
        raw_path = uri[len("sqlite://"):]
        if raw_path == ":memory:":
            return SQLiteStorage(":memory:")
        return SQLiteStorage(Path(raw_path).resolve())
    else:
        raise ValueError(f"Unsupported storage URI: {uri}")


from .sqlite import SQLiteStorage

__all__ = ["StorageBackend", "create_storage", "SQLiteStorage"]
