# poe/crypto/keys.py
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from poe.core.encoding import b64url_decode, b64url_encode


class AccountKeyPair:
    """
    Ed25519 account key. The base64url public key is the account Identity
    the registry records as claim owner.
    A pair loaded from a public key alone can verify but not sign.
    """

    def __init__(
        self,
        public_key: ed25519.Ed25519PublicKey,
        private_key: Optional[ed25519.Ed25519PrivateKey] = None,
    ):
        self._public_key = public_key
        self._private_key = private_key

    @classmethod
    def generate(cls) -> "AccountKeyPair":
        private_key = ed25519.Ed25519PrivateKey.generate()
        return cls(private_key.public_key(), private_key)

    @classmethod
    def from_private_b64url(cls, s: str) -> "AccountKeyPair":
        private_key = ed25519.Ed25519PrivateKey.from_private_bytes(b64url_decode(s))
        return cls(private_key.public_key(), private_key)

    @classmethod
    def from_public_b64url(cls, s: str) -> "AccountKeyPair":
        return cls(ed25519.Ed25519PublicKey.from_public_bytes(b64url_decode(s)))

    @property
    def can_sign(self) -> bool:
        return self._private_key is not None

    def public_key_b64url(self) -> str:
        raw = self._public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return b64url_encode(raw)

    @property
    def identity(self) -> str:
        return self.public_key_b64url()

    def private_key_b64url(self) -> str:
        if self._private_key is None:
            raise ValueError("Public-only key has no private part")
        raw = self._private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return b64url_encode(raw)

    def sign_bytes(self, data: bytes) -> bytes:
        if self._private_key is None:
            raise ValueError("Cannot sign with a public-only key")
        return self._private_key.sign(data)

    def verify_bytes(self, signature: bytes, data: bytes) -> bool:
        try:
            self._public_key.verify(signature, data)
        except InvalidSignature:
            return False
        return True
