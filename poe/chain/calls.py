# poe/chain/calls.py
from dataclasses import dataclass
from typing import Optional

from poe.core.canon import canonical_json
from poe.core.encoding import fingerprint_hex, parse_fingerprint
from poe.core.types import Event, Fingerprint, Height, Identity
from poe.registry.claims import ClaimRegistry

CREATE_CLAIM = "create_claim"
REVOKE_CLAIM = "revoke_claim"
TRANSFER_CLAIM = "transfer_claim"

CALL_FUNCTIONS = (CREATE_CLAIM, REVOKE_CLAIM, TRANSFER_CLAIM)


@dataclass(frozen=True)
class Call:
    """One registry call as submitted to the host, before authentication."""
    function: str
    fingerprint: Fingerprint
    receiver: Optional[Identity] = None     # transfer_claim only

    def __post_init__(self):
        if self.function not in CALL_FUNCTIONS:
            raise ValueError(f"Unknown call: {self.function!r}")
        if (self.function == TRANSFER_CLAIM) != (self.receiver is not None):
            raise ValueError("receiver is required for transfer_claim and only for it")
        object.__setattr__(self, "fingerprint", bytes(self.fingerprint))

    @classmethod
    def create_claim(cls, fingerprint: Fingerprint) -> "Call":
        return cls(CREATE_CLAIM, fingerprint)

    @classmethod
    def revoke_claim(cls, fingerprint: Fingerprint) -> "Call":
        return cls(REVOKE_CLAIM, fingerprint)

    @classmethod
    def transfer_claim(cls, receiver: Identity, fingerprint: Fingerprint) -> "Call":
        return cls(TRANSFER_CLAIM, fingerprint, receiver)

    def to_dict(self) -> dict:
        d = {"function": self.function, "fingerprint": fingerprint_hex(self.fingerprint)}
        if self.receiver is not None:
            d["receiver"] = self.receiver
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Call":
        return cls(
            function=d["function"],
            fingerprint=parse_fingerprint(d["fingerprint"], hex=True),
            receiver=d.get("receiver"),
        )


@dataclass(frozen=True)
class SignedCall:
    call: Call
    signer: Identity
    nonce: int
    signature: str = ""             # base64url Ed25519 sig, empty if unsigned

    @property
    def is_signed(self) -> bool:
        return bool(self.signature)

    def signing_payload(self) -> bytes:
        """Exact bytes covered by the signature."""
        return canonical_json({
            "call": self.call.to_dict(),
            "signer": self.signer,
            "nonce": self.nonce,
        })


def execute(registry: ClaimRegistry, caller: Identity, call: Call, height: Height) -> Event:
    """Route an authenticated call to the registry. Raises RegistryError on rejection."""
    if call.function == CREATE_CLAIM:
        return registry.create(caller, call.fingerprint, height)
    if call.function == REVOKE_CLAIM:
        return registry.revoke(caller, call.fingerprint, height)
    return registry.transfer(caller, call.receiver, call.fingerprint, height)
