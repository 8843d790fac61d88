"""
Storage backends for the fingerprint -> claim map.
"""

from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional, Tuple
from pathlib import Path
from poe.core.types import Claim, Fingerprint


class StorageBackend(ABC):
    """
    Abstract base for all claim storage implementations.
    Each call is atomic on its own; `transaction()` groups several of them.
    """

    @abstractmethod
    def contains(self, key: Fingerprint) -> bool:
        pass

    @abstractmethod
    def get(self, key: Fingerprint) -> Optional[Claim]:
        pass

    @abstractmethod
    def insert(self, key: Fingerprint, claim: Claim) -> None:
        pass

    @abstractmethod
    def remove(self, key: Fingerprint) -> None:
        pass

    @abstractmethod
    def items(self) -> List[Tuple[Fingerprint, Claim]]:
        """All claims, sorted by fingerprint bytes."""
        pass

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """Commit on normal exit; undo every write if the block raises."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self.items())


def create_storage(uri: str) -> StorageBackend:
    if uri in ("memory:", "memory://"):
        from .memory import MemoryStorage
        return MemoryStorage()

    if uri.startswith("sqlite://"):
        from .sqlite import SQLiteStorage
        # sqlite:///abs/path.db or sqlite://relative.db
        raw_path = uri[len("sqlite://"):]
        if not raw_path:
            raise ValueError(f"Missing database path in URI: {uri}")
        return SQLiteStorage(Path(raw_path).resolve())

    raise ValueError(f"Unsupported storage URI: {uri}")


from .memory import MemoryStorage
from .sqlite import SQLiteStorage

__all__ = ["StorageBackend", "create_storage", "MemoryStorage", "SQLiteStorage"]
