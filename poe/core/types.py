# poe/core/types.py
from dataclasses import dataclass, asdict
from typing import ClassVar, Dict, Union

from poe.core.encoding import fingerprint_hex, parse_fingerprint

Fingerprint = bytes     # opaque content key, compared byte for byte
Identity = str          # account id; public key base64url for signed calls
Height = int            # host block number, never decreasing


@dataclass(frozen=True)
class Claim:
    """Current ownership record for one fingerprint."""
    owner: Identity
    registered_at: Height       # height of the last ownership change

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Claim":
        return cls(owner=d["owner"], registered_at=int(d["registered_at"]))


@dataclass(frozen=True)
class _Event:
    owner: Identity
    fingerprint: Fingerprint

    name: ClassVar[str] = ""

    def to_dict(self) -> dict:
        """Canonical-JSON friendly form (fingerprint as hex)."""
        return {
            "event": self.name,
            "owner": self.owner,
            "fingerprint": fingerprint_hex(self.fingerprint),
        }


@dataclass(frozen=True)
class ClaimCreated(_Event):
    name: ClassVar[str] = "ClaimCreated"


@dataclass(frozen=True)
class ClaimRevoked(_Event):
    name: ClassVar[str] = "ClaimRevoked"


@dataclass(frozen=True)
class TransferCreated(_Event):
    """owner is the receiver; the former owner is not reported."""
    name: ClassVar[str] = "TransferCreated"


Event = Union[ClaimCreated, ClaimRevoked, TransferCreated]

EVENT_TYPES: Dict[str, type] = {
    cls.name: cls for cls in (ClaimCreated, ClaimRevoked, TransferCreated)
}


def event_from_dict(d: dict) -> Event:
    try:
        cls = EVENT_TYPES[d["event"]]
    except KeyError:
        raise ValueError(f"Unknown event: {d.get('event')!r}")
    return cls(owner=d["owner"], fingerprint=parse_fingerprint(d["fingerprint"], hex=True))


# Largest height every backend stores exactly (SQLite INTEGER is signed 64-bit)
MAX_HEIGHT: Height = 2**63 - 1


def check_height(height: Height) -> Height:
    if isinstance(height, bool) or not isinstance(height, int):
        raise TypeError(f"height must be an int, got {type(height).__name__}")
    if not 0 <= height <= MAX_HEIGHT:
        raise ValueError(f"height {height} outside 0..{MAX_HEIGHT}")
    return height
