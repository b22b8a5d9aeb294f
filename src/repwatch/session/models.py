"""Session data models — controller session and fault subscription leases."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_REFRESH_TIMEOUT = 600
SUBSCRIPTION_LEASE = 30.0


@dataclass
class Session:
    """An authenticated controller session.

    ``last_refresh`` is a monotonic clock reading, not wall time.
    """

    token: str
    refresh_timeout: int = DEFAULT_REFRESH_TIMEOUT
    last_refresh: float = 0.0

    def elapsed(self, now: float) -> float:
        return now - self.last_refresh


@dataclass
class Subscription:
    """A live faultInst subscription and its lease."""

    id: str
    last_refresh: float = 0.0

    def elapsed(self, now: float) -> float:
        return now - self.last_refresh
