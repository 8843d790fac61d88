from .claims import ClaimRegistry

__all__ = ["ClaimRegistry"]
