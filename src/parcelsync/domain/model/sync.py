"""Sync bookkeeping: sessions, audit entries, and customer match decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from parcelsync.domain.errors import SessionStateError

from .base import Entity, utcnow
from .enums import AuditOutcome, MappingType, SessionStatus, SyncType


@dataclass(frozen=True, slots=True)
class ProgressDelta:
    """Counter increments contributed by one unit of work."""

    processed: int = 0
    created_packages: int = 0
    updated_packages: int = 0
    created_customers: int = 0
    errors: int = 0

    def __add__(self, other: ProgressDelta) -> ProgressDelta:
        return ProgressDelta(
            processed=self.processed + other.processed,
            created_packages=self.created_packages + other.created_packages,
            updated_packages=self.updated_packages + other.updated_packages,
            created_customers=self.created_customers + other.created_customers,
            errors=self.errors + other.errors,
        )


@dataclass(eq=False, kw_only=True)
class SyncSession(Entity):
    """Progress record for one bulk import.

    ``running`` moves to ``completed`` or ``failed`` exactly once; terminal sessions
    reject every further mutation.
    """

    supplier_name: str
    status: SessionStatus = SessionStatus.RUNNING
    total_shipments: int = 0
    processed_shipments: int = 0
    created_packages: int = 0
    updated_packages: int = 0
    created_customers: int = 0
    error_count: int = 0
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None
    heartbeat_at: datetime | None = None
    failure_detail: str | None = None
    cancel_requested: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def apply(self, delta: ProgressDelta, *, at: datetime) -> None:
        self._ensure_running("update progress of")
        self.processed_shipments += delta.processed
        self.created_packages += delta.created_packages
        self.updated_packages += delta.updated_packages
        self.created_customers += delta.created_customers
        self.error_count += delta.errors
        self.heartbeat_at = at

    def set_total(self, total: int, *, at: datetime) -> None:
        self._ensure_running("set total of")
        self.total_shipments = total
        self.heartbeat_at = at

    def request_cancel(self) -> None:
        self._ensure_running("cancel")
        self.cancel_requested = True

    def complete(self, *, at: datetime) -> None:
        self._ensure_running("complete")
        self.status = SessionStatus.COMPLETED
        self.completed_at = at

    def fail(self, detail: str, *, at: datetime) -> None:
        self._ensure_running("fail")
        self.status = SessionStatus.FAILED
        self.failure_detail = detail
        self.completed_at = at

    def _ensure_running(self, action: str) -> None:
        if self.is_terminal:
            raise SessionStateError(
                f"Cannot {action} sync session {self.id}: already {self.status.value}"
            )


@dataclass(eq=False, kw_only=True)
class SyncAuditEntry(Entity):
    """Append-only record of one reconciliation or tracking-update attempt."""

    sync_type: SyncType
    outcome: AuditOutcome
    package_id: UUID | None = None
    session_id: UUID | None = None
    external_reference: str | None = None
    response_snapshot: dict[str, object] | None = None
    error_message: str | None = None
    recorded_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class CustomerMatchDecision(Entity):
    """Which customer a consignee resolved to, and which qualifying candidates lost."""

    customer_id: UUID
    mapping_type: MappingType
    confidence: float
    external_reference: str | None = None
    session_id: UUID | None = None
    rejected_candidates: list[dict[str, object]] = field(default_factory=list)
    decided_at: datetime = field(default_factory=utcnow)
