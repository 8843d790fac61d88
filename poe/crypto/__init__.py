from .keys import AccountKeyPair
from .hashing import event_hash, events_root, state_root

__all__ = ["AccountKeyPair", "event_hash", "events_root", "state_root"]
