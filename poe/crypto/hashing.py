# poe/crypto/hashing.py
"""
Digests over canonical JSON. Two replicas that processed the same calls at
the same heights produce the same digests. Heights go in as decimal
strings: JCS writes numbers as IEEE-754 doubles, exact only up to 2**53.
"""

from typing import Iterable, Tuple

from poe.core.canon import canonical_sha256
from poe.core.encoding import fingerprint_hex
from poe.core.types import Event, Height
from poe.storage import StorageBackend


def event_hash(event: Event, height: Height, prev_hash: str = "") -> str:
    """Hash of one event record, chained to the one before it."""
    return canonical_sha256(dict(event.to_dict(), height=str(height), prev_hash=prev_hash))


def events_root(records: Iterable[Tuple[Event, Height]]) -> str:
    """Head of the event hash chain; empty string for no events."""
    head = ""
    for event, height in records:
        head = event_hash(event, height, head)
    return head


def state_root(storage: StorageBackend) -> str:
    return canonical_sha256([
        {
            "fingerprint": fingerprint_hex(fp),
            "owner": claim.owner,
            "registered_at": str(claim.registered_at),
        }
        for fp, claim in storage.items()
    ])
