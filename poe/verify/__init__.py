from .replay import ReplayFailure, ReplayResult, ReplayVerifier

__all__ = ["ReplayFailure", "ReplayResult", "ReplayVerifier"]
