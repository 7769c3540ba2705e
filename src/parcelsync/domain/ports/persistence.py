"""Ports for persisting reconciliation state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from parcelsync.domain.model import (
    Customer,
    CustomerMatchDecision,
    Package,
    SyncAuditEntry,
    SyncSession,
    TrackingEvent,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from parcelsync.domain.model import SyncStatus


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class CustomerRepository(Repository[Customer], Protocol):
    def get(self, customer_id: UUID) -> Customer | None: ...

    def list_all(self) -> Sequence[Customer]: ...


@runtime_checkable
class PackageRepository(Repository[Package], Protocol):
    def get(self, package_id: UUID) -> Package | None: ...

    def find_by_idempotency_keys(
        self,
        *,
        reference_number: str,
        external_shipment_id: str | None,
    ) -> Package | None:
        """Match on ``tracking_number == reference_number`` OR the external shipment id.

        A match on the external shipment id wins when both keys hit different rows.
        """
        ...

    def update_sync_fields(
        self,
        package_id: UUID,
        *,
        sync_status: SyncStatus,
        synced_at: datetime,
        carrier: str | None = None,
        external_tracking_number: str | None = None,
    ) -> int:
        """Single-statement update; returns the affected row count."""
        ...

    def set_sync_status(self, package_id: UUID, sync_status: SyncStatus) -> int: ...


@runtime_checkable
class TrackingEventRepository(Repository[TrackingEvent], Protocol):
    def add_many(self, events: Sequence[TrackingEvent]) -> None: ...

    def list_for_package(self, package_id: UUID) -> Sequence[TrackingEvent]: ...


@runtime_checkable
class SyncSessionRepository(Repository[SyncSession], Protocol):
    def get(self, session_id: UUID) -> SyncSession | None: ...


@runtime_checkable
class SyncAuditRepository(Repository[SyncAuditEntry], Protocol):
    def list_for_package(self, package_id: UUID) -> Sequence[SyncAuditEntry]: ...

    def list_for_session(self, session_id: UUID) -> Sequence[SyncAuditEntry]: ...


@runtime_checkable
class CustomerMatchRepository(Repository[CustomerMatchDecision], Protocol):
    def list_for_session(self, session_id: UUID) -> Sequence[CustomerMatchDecision]: ...
