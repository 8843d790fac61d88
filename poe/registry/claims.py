# poe/registry/claims.py
from typing import Optional

from poe.core.errors import NoSuchProof, NotProofOwner, ProofAlreadyClaimed
from poe.core.types import (
    Claim,
    ClaimCreated,
    ClaimRevoked,
    Fingerprint,
    Height,
    Identity,
    TransferCreated,
    check_height,
)
from poe.events import NotificationSink
from poe.storage import StorageBackend


class ClaimRegistry:
    """
    Proof-of-existence registry: fingerprint -> (owner, height).

    Every operation either applies fully (one storage write, one event) or
    raises a RegistryError and leaves storage and sink untouched. The caller
    identity is taken as already authenticated; the height is whatever the
    host says it is when the call is processed, within 0..MAX_HEIGHT so
    every backend stores it exactly.
    """

    def __init__(self, storage: StorageBackend, sink: NotificationSink):
        self.storage = storage
        self.sink = sink

    def proofs(self, fingerprint: Fingerprint) -> Optional[Claim]:
        """Read-only lookup. None when the fingerprint is unclaimed."""
        return self.storage.get(fingerprint)

    def create(self, caller: Identity, fingerprint: Fingerprint, height: Height) -> ClaimCreated:
        fingerprint = bytes(fingerprint)
        check_height(height)
        with self.storage.transaction():
            if self.storage.contains(fingerprint):
                raise ProofAlreadyClaimed(fingerprint)

            self.storage.insert(fingerprint, Claim(owner=caller, registered_at=height))
            event = ClaimCreated(owner=caller, fingerprint=fingerprint)
            self.sink.deposit(event, height)
        return event

    def revoke(self, caller: Identity, fingerprint: Fingerprint, height: Height) -> ClaimRevoked:
        fingerprint = bytes(fingerprint)
        check_height(height)
        with self.storage.transaction():
            self._ensure_owner(caller, fingerprint)

            self.storage.remove(fingerprint)
            event = ClaimRevoked(owner=caller, fingerprint=fingerprint)
            self.sink.deposit(event, height)
        return event

    def transfer(
        self,
        caller: Identity,
        receiver: Identity,
        fingerprint: Fingerprint,
        height: Height,
    ) -> TransferCreated:
        """
        Hand the claim to `receiver` and restamp it with `height`.
        Self-transfer is allowed and only refreshes the height.
        """
        fingerprint = bytes(fingerprint)
        check_height(height)
        with self.storage.transaction():
            self._ensure_owner(caller, fingerprint)

            self.storage.insert(fingerprint, Claim(owner=receiver, registered_at=height))
            event = TransferCreated(owner=receiver, fingerprint=fingerprint)
            self.sink.deposit(event, height)
        return event

    def _ensure_owner(self, caller: Identity, fingerprint: Fingerprint) -> Claim:
        # Existence before ownership: there is no owner to compare against otherwise
        claim = self.storage.get(fingerprint)
        if claim is None:
            raise NoSuchProof(fingerprint)
        if claim.owner != caller:
            raise NotProofOwner(fingerprint)
        return claim
