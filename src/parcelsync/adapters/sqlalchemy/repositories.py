"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import or_, select, update

from parcelsync.adapters.sqlalchemy.mappings import (
    customer_match_table,
    customer_table,
    package_table,
    sync_audit_entry_table,
    tracking_event_table,
)
from parcelsync.domain.model import (
    Customer,
    CustomerMatchDecision,
    Package,
    SyncAuditEntry,
    SyncSession,
    TrackingEvent,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from parcelsync.domain.model import SyncStatus


class SqlAlchemyCustomerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Customer) -> None:
        self.session.add(entity)
        # No relationship() links package to customer, so insert order must be forced.
        self.session.flush()

    def get(self, customer_id: uuid.UUID) -> Customer | None:
        return self.session.get(Customer, customer_id)

    def list_all(self) -> list[Customer]:
        stmt = select(Customer).order_by(customer_table.c.created_at, customer_table.c.id)
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyPackageRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Package) -> None:
        self.session.add(entity)

    def get(self, package_id: uuid.UUID) -> Package | None:
        return self.session.get(Package, package_id)

    def find_by_idempotency_keys(
        self,
        *,
        reference_number: str,
        external_shipment_id: str | None,
    ) -> Package | None:
        clauses = [package_table.c.tracking_number == reference_number]
        if external_shipment_id:
            clauses.append(package_table.c.external_shipment_id == external_shipment_id)
        stmt = select(Package).where(or_(*clauses)).order_by(package_table.c.created_at)
        matches = list(self.session.execute(stmt).scalars())
        if not matches:
            return None
        if external_shipment_id:
            for package in matches:
                if package.external_shipment_id == external_shipment_id:
                    return package
        return matches[0]

    def update_sync_fields(
        self,
        package_id: uuid.UUID,
        *,
        sync_status: SyncStatus,
        synced_at: datetime,
        carrier: str | None = None,
        external_tracking_number: str | None = None,
    ) -> int:
        values: dict[str, object] = {
            "sync_status": sync_status,
            "last_sync_timestamp": synced_at,
        }
        if carrier is not None:
            values["carrier"] = carrier
        if external_tracking_number is not None:
            values["external_tracking_number"] = external_tracking_number
        stmt = update(package_table).where(package_table.c.id == package_id).values(**values)
        result: CursorResult[tuple[()]] = self.session.execute(stmt)  # pyright: ignore[reportAssignmentType]
        return result.rowcount

    def set_sync_status(self, package_id: uuid.UUID, sync_status: SyncStatus) -> int:
        stmt = (
            update(package_table)
            .where(package_table.c.id == package_id)
            .values(sync_status=sync_status)
        )
        result: CursorResult[tuple[()]] = self.session.execute(stmt)  # pyright: ignore[reportAssignmentType]
        return result.rowcount


class SqlAlchemyTrackingEventRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: TrackingEvent) -> None:
        self.session.add(entity)

    def add_many(self, events: Sequence[TrackingEvent]) -> None:
        self.session.add_all(events)
        # Surface constraint violations inside this step rather than at commit.
        self.session.flush()

    def list_for_package(self, package_id: uuid.UUID) -> list[TrackingEvent]:
        stmt = (
            select(TrackingEvent)
            .where(tracking_event_table.c.package_id == package_id)
            .order_by(tracking_event_table.c.timestamp)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemySyncSessionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncSession) -> None:
        self.session.add(entity)

    def get(self, session_id: uuid.UUID) -> SyncSession | None:
        return self.session.get(SyncSession, session_id)


class SqlAlchemySyncAuditRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncAuditEntry) -> None:
        self.session.add(entity)

    def list_for_package(self, package_id: uuid.UUID) -> list[SyncAuditEntry]:
        stmt = (
            select(SyncAuditEntry)
            .where(sync_audit_entry_table.c.package_id == package_id)
            .order_by(sync_audit_entry_table.c.recorded_at)
        )
        return list(self.session.execute(stmt).scalars())

    def list_for_session(self, session_id: uuid.UUID) -> list[SyncAuditEntry]:
        stmt = (
            select(SyncAuditEntry)
            .where(sync_audit_entry_table.c.session_id == session_id)
            .order_by(sync_audit_entry_table.c.recorded_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyCustomerMatchRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CustomerMatchDecision) -> None:
        self.session.add(entity)

    def list_for_session(self, session_id: uuid.UUID) -> list[CustomerMatchDecision]:
        stmt = (
            select(CustomerMatchDecision)
            .where(customer_match_table.c.session_id == session_id)
            .order_by(customer_match_table.c.decided_at)
        )
        return list(self.session.execute(stmt).scalars())
