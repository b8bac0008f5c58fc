"""Error taxonomy for the analytics engine.

Only ``InvalidAmount`` ever reaches callers of the write path. Persistence
errors are caught and logged by the store; a missing price history is modelled
as ``None`` rather than an exception.
"""

from __future__ import annotations

from typing import Any


class AnalyticsError(Exception):
    """Base class for analytics errors."""


class InvalidAmount(AnalyticsError, ValueError):
    def __init__(self, raw: Any) -> None:
        self.raw = raw
        super().__init__(f"invalid amount: {raw!r} is not a non-negative integer")


class PersistenceFailure(AnalyticsError):
    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"persistence failed for {key}: {reason}")


class MalformedPersistedState(AnalyticsError):
    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"malformed persisted state in {key}: {reason}")
