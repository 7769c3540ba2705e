"""Reusable fakes and builders for reconciliation tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Literal

from parcelsync.domain.errors import NotFoundError, PersistenceError
from parcelsync.domain.model import (
    Consignee,
    Customer,
    CustomerMatchDecision,
    Package,
    PackageStatus,
    Party,
    ShipmentRecord,
    SyncAuditEntry,
    SyncSession,
    SyncStatus,
    TrackingEventRecord,
    TrackingUpdate,
)
from parcelsync.domain.ports import ShipmentBatch

if TYPE_CHECKING:
    import uuid
    from collections.abc import Callable, Iterable, Sequence

    from parcelsync.domain.model import TrackingEvent
    from parcelsync.domain.ports import BatchItem


def make_shipment(
    reference_number: str = "REF-1",
    *,
    consignee_name: str = "Jane Doe",
    consignee_address: str | None = "1 Main St, Miami FL",
    shipment_id: str | None = None,
    warehouse_location: str | None = "A-1",
    status: str | None = "In Warehouse",
) -> ShipmentRecord:
    return ShipmentRecord(
        reference_number=reference_number,
        shipment_id=shipment_id,
        tracking_number=f"TRK-{reference_number}",
        description="Box of books",
        weight=2.5,
        dimensions="10x10x10",
        declared_value=40.0,
        status=status,
        warehouse_location=warehouse_location,
        sender=Party(name="Acme Supplies", address="9 Supplier Way"),
        consignee=Consignee(
            name=consignee_name,
            address=consignee_address,
            email="jane@example.com",
            phone="555-0100",
        ),
    )


def make_tracking_update(
    tracking_number: str = "9400100000000000000000",
    *,
    status: str = "Out for Delivery",
    events: int = 2,
) -> TrackingUpdate:
    start = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)
    return TrackingUpdate(
        tracking_number=tracking_number,
        carrier="USPS",
        status=status,
        normalized_status=PackageStatus.READY_FOR_PICKUP,
        events=tuple(
            TrackingEventRecord(
                event_type="update",
                description=f"Event {index}",
                location="MIAMI FL",
                timestamp=start + timedelta(hours=index),
            )
            for index in range(events)
        ),
        raw_response="<TrackResponse/>",
    )


class FixedClock:
    """Deterministic clock advancing by ``step`` on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, tzinfo=UTC)
        self.step = step or timedelta(seconds=1)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


@dataclass
class InMemoryStore:
    """Backing state shared by every fake unit of work built from it.

    ``failures`` names repository operations (``"customers.list_all"``,
    ``"tracking_events.add_many"``, ...) that raise ``PersistenceError``.
    """

    customers: dict[uuid.UUID, Customer] = field(default_factory=dict)
    packages: dict[uuid.UUID, Package] = field(default_factory=dict)
    tracking_events: list[TrackingEvent] = field(default_factory=list)
    sessions: dict[uuid.UUID, SyncSession] = field(default_factory=dict)
    audit_entries: list[SyncAuditEntry] = field(default_factory=list)
    matches: list[CustomerMatchDecision] = field(default_factory=list)
    failures: set[str] = field(default_factory=set)

    def check(self, operation: str) -> None:
        if operation in self.failures:
            raise PersistenceError(f"store unavailable during {operation}")


class FakeCustomerRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def add(self, entity: Customer) -> None:
        self.store.check("customers.add")
        self.store.customers[entity.id] = entity

    def get(self, customer_id: uuid.UUID) -> Customer | None:
        return self.store.customers.get(customer_id)

    def list_all(self) -> list[Customer]:
        self.store.check("customers.list_all")
        return list(self.store.customers.values())


class FakePackageRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def add(self, entity: Package) -> None:
        self.store.check("packages.add")
        self.store.packages[entity.id] = entity

    def get(self, package_id: uuid.UUID) -> Package | None:
        return self.store.packages.get(package_id)

    def find_by_idempotency_keys(
        self,
        *,
        reference_number: str,
        external_shipment_id: str | None,
    ) -> Package | None:
        self.store.check("packages.find_by_idempotency_keys")
        by_reference: Package | None = None
        for package in self.store.packages.values():
            if external_shipment_id and package.external_shipment_id == external_shipment_id:
                return package
            if package.tracking_number == reference_number and by_reference is None:
                by_reference = package
        return by_reference

    def update_sync_fields(
        self,
        package_id: uuid.UUID,
        *,
        sync_status: SyncStatus,
        synced_at: datetime,
        carrier: str | None = None,
        external_tracking_number: str | None = None,
    ) -> int:
        self.store.check("packages.update_sync_fields")
        package = self.store.packages.get(package_id)
        if package is None:
            return 0
        package.sync_status = sync_status
        package.last_sync_timestamp = synced_at
        if carrier is not None:
            package.carrier = carrier
        if external_tracking_number is not None:
            package.external_tracking_number = external_tracking_number
        return 1

    def set_sync_status(self, package_id: uuid.UUID, sync_status: SyncStatus) -> int:
        self.store.check("packages.set_sync_status")
        package = self.store.packages.get(package_id)
        if package is None:
            return 0
        package.sync_status = sync_status
        return 1


class FakeTrackingEventRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def add(self, entity: TrackingEvent) -> None:
        self.add_many([entity])

    def add_many(self, events: Sequence[TrackingEvent]) -> None:
        self.store.check("tracking_events.add_many")
        self.store.tracking_events.extend(events)

    def list_for_package(self, package_id: uuid.UUID) -> list[TrackingEvent]:
        return [event for event in self.store.tracking_events if event.package_id == package_id]


class FakeSyncSessionRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def add(self, entity: SyncSession) -> None:
        self.store.check("sync_sessions.add")
        self.store.sessions[entity.id] = entity

    def get(self, session_id: uuid.UUID) -> SyncSession | None:
        self.store.check("sync_sessions.get")
        return self.store.sessions.get(session_id)


class FakeSyncAuditRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def add(self, entity: SyncAuditEntry) -> None:
        self.store.check("audit_entries.add")
        self.store.audit_entries.append(entity)

    def list_for_package(self, package_id: uuid.UUID) -> list[SyncAuditEntry]:
        return [entry for entry in self.store.audit_entries if entry.package_id == package_id]

    def list_for_session(self, session_id: uuid.UUID) -> list[SyncAuditEntry]:
        return [entry for entry in self.store.audit_entries if entry.session_id == session_id]


class FakeCustomerMatchRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store

    def add(self, entity: CustomerMatchDecision) -> None:
        self.store.matches.append(entity)

    def list_for_session(self, session_id: uuid.UUID) -> list[CustomerMatchDecision]:
        return [match for match in self.store.matches if match.session_id == session_id]


@dataclass(slots=True)
class FakeReconciliationRepositories:
    customers: FakeCustomerRepository
    packages: FakePackageRepository
    tracking_events: FakeTrackingEventRepository
    sync_sessions: FakeSyncSessionRepository
    audit_entries: FakeSyncAuditRepository
    customer_matches: FakeCustomerMatchRepository


class FakeUnitOfWork:
    """Unit of work whose writes land in ``store`` immediately."""

    def __init__(self, store: InMemoryStore) -> None:
        self.repositories = FakeReconciliationRepositories(
            customers=FakeCustomerRepository(store),
            packages=FakePackageRepository(store),
            tracking_events=FakeTrackingEventRepository(store),
            sync_sessions=FakeSyncSessionRepository(store),
            audit_entries=FakeSyncAuditRepository(store),
            customer_matches=FakeCustomerMatchRepository(store),
        )
        self.committed = False
        self.rollback_called = False

    def __enter__(self) -> FakeUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: object | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rollback_called = True


def fake_uow_factory(store: InMemoryStore) -> Callable[[], FakeUnitOfWork]:
    def factory() -> FakeUnitOfWork:
        return FakeUnitOfWork(store)

    return factory


class FakeShipmentFetcher:
    """Serves a fixed list of shipments; raises ``error`` when set."""

    def __init__(
        self,
        shipments: Iterable[BatchItem] = (),
        *,
        error: Exception | None = None,
    ) -> None:
        self.shipments: list[BatchItem] = list(shipments)
        self.error = error
        self.calls: list[str] = []

    def fetch_shipments(self, supplier_name: str) -> ShipmentBatch:
        self.calls.append(supplier_name)
        if self.error is not None:
            raise self.error
        return ShipmentBatch(list(self.shipments), total=len(self.shipments))

    def fetch_shipment(
        self,
        *,
        shipment_id: str | None = None,
        reference_number: str | None = None,
    ) -> ShipmentRecord:
        if self.error is not None:
            raise self.error
        for item in self.shipments:
            if not isinstance(item, ShipmentRecord):
                continue
            if shipment_id and item.shipment_id == shipment_id:
                return item
            if reference_number and item.reference_number == reference_number:
                return item
        raise NotFoundError(f"no shipment {shipment_id or reference_number}")


class FakeTrackingFetcher:
    def __init__(
        self,
        update: TrackingUpdate | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self.update = update or make_tracking_update()
        self.error = error
        self.calls: list[str] = []

    def __call__(self, tracking_number: str) -> TrackingUpdate:
        self.calls.append(tracking_number)
        if self.error is not None:
            raise self.error
        return self.update


if TYPE_CHECKING:
    from parcelsync.domain.ports import (
        ReconciliationUnitOfWork,
        ShipmentFetcher,
        TrackingFetcher,
    )

    _uow_check: ReconciliationUnitOfWork = FakeUnitOfWork(InMemoryStore())
    _shipments_check: ShipmentFetcher = FakeShipmentFetcher()
    _tracking_check: TrackingFetcher = FakeTrackingFetcher()
