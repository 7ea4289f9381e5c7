"""Storage modules for SecureAuth."""

from .attempts import AttemptStore, BlockedAttempt, Statistic

__all__ = ["AttemptStore", "BlockedAttempt", "Statistic"]
