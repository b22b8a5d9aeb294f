"""Exception hierarchy shared by every pipeline stage."""

from __future__ import annotations


class RepWatchError(Exception):
    """Base class for all repwatch failures."""


class ApicError(RepWatchError):
    """A controller request failed in transport, status, or payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(RepWatchError):
    """Login or session refresh failed."""


class SubscriptionError(RepWatchError):
    """Fault subscription or its renewal failed."""


class SocketError(RepWatchError):
    """The event socket could not be opened or stopped receiving."""


class ParseError(RepWatchError):
    """A fault record could not be parsed."""


class RemediationError(RepWatchError):
    """A node clear action could not be submitted."""
