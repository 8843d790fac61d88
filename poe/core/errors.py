# poe/core/errors.py
"""
Dispatch errors. All of them are expected outcomes of normal use: the call
is rejected, nothing is written, and the error goes back to the caller.
"""

from typing import Optional

from poe.core.encoding import fingerprint_hex


class RegistryError(Exception):
    """Base class; `code` is stable and safe to compare across replicas."""

    code = "RegistryError"

    def __init__(self, fingerprint: Optional[bytes] = None, detail: str = ""):
        self.fingerprint = fingerprint
        self.detail = detail
        msg = self.code
        if fingerprint is not None:
            msg += f": {fingerprint_hex(fingerprint)}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class ProofAlreadyClaimed(RegistryError):
    code = "ProofAlreadyClaimed"


class NoSuchProof(RegistryError):
    code = "NoSuchProof"


class NotProofOwner(RegistryError):
    code = "NotProofOwner"


class BadOrigin(RegistryError):
    """Raised by the host before the registry is reached."""
    code = "BadOrigin"
