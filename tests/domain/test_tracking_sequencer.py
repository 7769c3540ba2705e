from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest

from parcelsync.domain.errors import InconsistentStateError, NotFoundError, PersistenceError
from parcelsync.domain.model import Customer, Package, SyncStatus
from parcelsync.domain.tracking import (
    PrimaryFields,
    TrackingWriteSequencer,
    events_from_records,
)
from tests.helpers.parcels import make_tracking_update

if TYPE_CHECKING:
    from collections.abc import Callable

    from tests.helpers.parcels import FakeUnitOfWork, FixedClock, InMemoryStore


def _seed_package(store: InMemoryStore) -> Package:
    customer = Customer(full_name="Jane Doe")
    package = Package(tracking_number="REF-1", customer_id=customer.id)
    store.customers[customer.id] = customer
    store.packages[package.id] = package
    return package


@pytest.fixture
def sequencer(
    uow_factory: Callable[[], FakeUnitOfWork],
    clock: FixedClock,
) -> TrackingWriteSequencer:
    return TrackingWriteSequencer(uow_factory, clock=clock)


def test_apply_tracking_update_marks_synced_and_stores_events(
    sequencer: TrackingWriteSequencer,
    store: InMemoryStore,
) -> None:
    package = _seed_package(store)
    update = make_tracking_update(events=3)
    events = events_from_records(package.id, update.carrier, update.events)

    result = sequencer.apply_tracking_update(
        package.id,
        PrimaryFields(carrier="USPS", external_tracking_number=update.tracking_number),
        events,
    )

    assert result.consistent
    assert package.sync_status is SyncStatus.SYNCED
    assert package.carrier == "USPS"
    assert package.external_tracking_number == update.tracking_number
    assert package.last_sync_timestamp is not None
    assert len(store.tracking_events) == 3


def test_empty_event_batch_is_not_an_error(
    sequencer: TrackingWriteSequencer,
    store: InMemoryStore,
) -> None:
    package = _seed_package(store)

    result = sequencer.apply_tracking_update(package.id, PrimaryFields(carrier="USPS"), [])

    assert result.consistent
    assert package.sync_status is SyncStatus.SYNCED
    assert store.tracking_events == []


def test_missing_package_raises_not_found(sequencer: TrackingWriteSequencer) -> None:
    with pytest.raises(NotFoundError):
        sequencer.apply_tracking_update(uuid.uuid4(), PrimaryFields(), [])


def test_failed_event_insert_flags_package_as_error(
    sequencer: TrackingWriteSequencer,
    store: InMemoryStore,
) -> None:
    package = _seed_package(store)
    update = make_tracking_update()
    events = events_from_records(package.id, update.carrier, update.events)
    store.failures.add("tracking_events.add_many")

    result = sequencer.apply_tracking_update(package.id, PrimaryFields(carrier="USPS"), events)

    assert not result.consistent
    assert isinstance(result.error, PersistenceError)
    assert package.sync_status is SyncStatus.ERROR
    # primary fields reflect real carrier state and are kept
    assert package.carrier == "USPS"
    assert store.tracking_events == []


def test_failed_compensation_raises_inconsistent_state(
    sequencer: TrackingWriteSequencer,
    store: InMemoryStore,
    caplog: pytest.LogCaptureFixture,
) -> None:
    package = _seed_package(store)
    update = make_tracking_update()
    events = events_from_records(package.id, update.carrier, update.events)
    store.failures.update({"tracking_events.add_many", "packages.set_sync_status"})

    with caplog.at_level("CRITICAL"), pytest.raises(InconsistentStateError):
        sequencer.apply_tracking_update(package.id, PrimaryFields(carrier="USPS"), events)

    assert package.sync_status is SyncStatus.SYNCED
    assert any(record.levelname == "CRITICAL" for record in caplog.records)
