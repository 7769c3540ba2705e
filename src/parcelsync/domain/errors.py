"""Error taxonomy for shipment reconciliation.

Retry semantics are carried by type: ``TransportError`` is retryable, the rest are not.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for every failure raised by the reconciliation core."""


class TransportError(SyncError):
    """Network or HTTP-level failure talking to an external system."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProtocolFault(SyncError):
    """The remote system answered with a structured fault/error envelope."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class ParseError(SyncError):
    """A response could not be decoded into the expected schema."""


class NotFoundError(SyncError):
    """A referenced local entity does not exist (or vanished concurrently)."""


class PersistenceError(SyncError):
    """Store-level failure on read or write."""


class SessionStateError(SyncError):
    """Illegal sync-session transition, e.g. mutating a terminal session."""


class InconsistentStateError(SyncError):
    """A compensating write failed; the store needs operator attention."""
