# poe/core/canon.py
import hashlib
from typing import Any

try:
    import jcs
except ImportError:
    raise ImportError("Please install jcs: pip install jcs")


def canonical_json(obj: Any) -> bytes:
    """
    RFC 8785 (JSON Canonicalization Scheme) bytes.
    Signing payloads and every digest a replica publishes go through here.
    """
    return jcs.canonicalize(obj)


def canonical_sha256(obj: Any) -> str:
    """Hex SHA-256 of the canonical form; key order never changes the result."""
    return hashlib.sha256(canonical_json(obj)).hexdigest()
