# poe/chain/runtime.py
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple, Union

from poe.core.encoding import b64url_decode, b64url_encode
from poe.core.errors import BadOrigin, RegistryError
from poe.core.types import Claim, Event, Fingerprint, Height, Identity, check_height
from poe.crypto.keys import AccountKeyPair
from poe.events import EventLog, NotificationSink
from poe.registry.claims import ClaimRegistry
from poe.storage import MemoryStorage, StorageBackend, create_storage
from .calls import Call, SignedCall, execute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    ok: bool
    height: Height
    event: Optional[Event] = None
    error: Optional[RegistryError] = None

    def __bool__(self):
        return self.ok


@dataclass(frozen=True)
class JournalEntry:
    """An authenticated call as it was applied. Enough to replay it."""
    height: Height
    caller: Identity
    call: Call


class Runtime:
    """
    Minimal host around a ClaimRegistry: owns the block height, checks
    signatures and nonces, and dispatches calls one at a time in the order
    they are submitted.
    """

    def __init__(
        self,
        storage: Optional[Union[StorageBackend, str]] = None,
        sink: Optional[NotificationSink] = None,
        height: Height = 0,
    ):
        check_height(height)

        # Accept a backend, a storage URI, or a plain SQLite file path
        if isinstance(storage, str):
            stripped = storage.strip()
            if stripped.startswith(("sqlite://", "memory:")):
                storage = create_storage(stripped)
            elif stripped:
                storage = create_storage(f"sqlite://{stripped}")
            else:
                storage = None
        if storage is None:
            storage = MemoryStorage()

        if sink is None:
            sink = storage if isinstance(storage, NotificationSink) else EventLog()

        self.storage: StorageBackend = storage
        self.sink = sink
        self.registry = ClaimRegistry(storage, sink)
        self._height = height
        self._nonces: Dict[Identity, int] = {}
        self.journal: List[JournalEntry] = []
        self.history: List[Tuple[SignedCall, DispatchResult]] = []

    @property
    def block_number(self) -> Height:
        return self._height

    def advance_block(self, n: int = 1) -> Height:
        if n < 0:
            raise ValueError("Block height never decreases")
        self._height = check_height(self._height + n)
        return self._height

    def next_nonce(self, identity: Identity) -> int:
        return self._nonces.get(identity, 0)

    def sign(self, keypair: AccountKeyPair, call: Call) -> SignedCall:
        """Build a signed call for `keypair` with its next unused nonce."""
        unsigned = SignedCall(call=call, signer=keypair.identity, nonce=self.next_nonce(keypair.identity))
        signature = keypair.sign_bytes(unsigned.signing_payload())
        return replace(unsigned, signature=b64url_encode(signature))

    def authenticate(self, signed: SignedCall) -> Identity:
        """Return the verified caller, or raise BadOrigin."""
        if not signed.is_signed:
            raise BadOrigin(detail="call is not signed")
        try:
            verifier = AccountKeyPair.from_public_b64url(signed.signer)
            signature = b64url_decode(signed.signature)
        except ValueError as e:
            raise BadOrigin(detail=f"malformed signer or signature: {e}")
        if not verifier.verify_bytes(signature, signed.signing_payload()):
            raise BadOrigin(detail="invalid signature")
        expected = self.next_nonce(signed.signer)
        if signed.nonce != expected:
            raise BadOrigin(detail=f"stale or future nonce {signed.nonce}, expected {expected}")
        return signed.signer

    def dispatch(self, signed: SignedCall) -> DispatchResult:
        height = self._height
        try:
            caller = self.authenticate(signed)
        except BadOrigin as e:
            logger.info("Rejected %s at height %d: %s", signed.call.function, height, e)
            result = DispatchResult(ok=False, height=height, error=e)
            self.history.append((signed, result))
            return result

        # Host failures propagate from apply() before the nonce is spent;
        # registry rejections still spend it
        result = self.apply(caller, signed.call)
        self._nonces[caller] = signed.nonce + 1
        self.history.append((signed, result))
        return result

    def apply(self, caller: Identity, call: Call) -> DispatchResult:
        """
        Dispatch a call whose caller is already authenticated.
        Registry rejections come back as a failed DispatchResult. Anything
        else (storage or sink failure) is rolled back by the registry and
        re-raised without touching the journal.
        """
        height = self._height
        try:
            event = execute(self.registry, caller, call, height)
        except RegistryError as e:
            self.journal.append(JournalEntry(height, caller, call))
            logger.info("%s failed at height %d: %s", call.function, height, e.code)
            return DispatchResult(ok=False, height=height, error=e)
        self.journal.append(JournalEntry(height, caller, call))
        logger.debug("%s at height %d: %s", call.function, height, event.name)
        return DispatchResult(ok=True, height=height, event=event)

    def proofs(self, fingerprint: Fingerprint) -> Optional[Claim]:
        return self.registry.proofs(fingerprint)

    def close(self) -> None:
        self.storage.close()
