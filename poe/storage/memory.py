from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from poe.core.types import Claim, Fingerprint
from . import StorageBackend


class MemoryStorage(StorageBackend):
    """Dict-backed storage. Used for tests, replays and throwaway runtimes."""

    def __init__(self):
        self._claims: Optional[Dict[Fingerprint, Claim]] = {}

    @property
    def claims(self) -> Dict[Fingerprint, Claim]:
        if self._claims is None:
            raise RuntimeError("Storage is closed")
        return self._claims

    def contains(self, key: Fingerprint) -> bool:
        return bytes(key) in self.claims

    def get(self, key: Fingerprint) -> Optional[Claim]:
        return self.claims.get(bytes(key))

    def insert(self, key: Fingerprint, claim: Claim) -> None:
        self.claims[bytes(key)] = claim

    def remove(self, key: Fingerprint) -> None:
        self.claims.pop(bytes(key), None)

    def items(self) -> List[Tuple[Fingerprint, Claim]]:
        return sorted(self.claims.items())

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # Claims are frozen, so a shallow copy is a full snapshot
        snapshot = dict(self.claims)
        try:
            yield
        except BaseException:
            self._claims = snapshot
            raise

    def close(self) -> None:
        self._claims = None
