from .calls import Call, SignedCall, execute
from .runtime import DispatchResult, Runtime

__all__ = ["Call", "SignedCall", "execute", "DispatchResult", "Runtime"]
