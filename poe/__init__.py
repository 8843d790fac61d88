# poe/__init__.py
"""
PoE — proof-of-existence claim registry.
Records which account first registered a content fingerprint, and lets that
account revoke the claim or transfer it to another account.

Deterministic by construction: replaying the same ordered calls at the same
heights yields the same registry and the same event sequence on any machine.
"""

__version__ = "0.1.0.dev0"

from poe.core.errors import (
    BadOrigin,
    NoSuchProof,
    NotProofOwner,
    ProofAlreadyClaimed,
    RegistryError,
)
from poe.core.types import Claim, ClaimCreated, ClaimRevoked, TransferCreated
from poe.chain import Call, DispatchResult, Runtime, SignedCall
from poe.events import EventLog, NotificationSink
from poe.registry.claims import ClaimRegistry
from poe.storage import MemoryStorage, SQLiteStorage, StorageBackend, create_storage

__all__ = [
    "BadOrigin",
    "Call",
    "DispatchResult",
    "Runtime",
    "SignedCall",
    "Claim",
    "ClaimCreated",
    "ClaimRegistry",
    "ClaimRevoked",
    "EventLog",
    "MemoryStorage",
    "NoSuchProof",
    "NotProofOwner",
    "NotificationSink",
    "ProofAlreadyClaimed",
    "RegistryError",
    "SQLiteStorage",
    "StorageBackend",
    "TransferCreated",
    "create_storage",
]
