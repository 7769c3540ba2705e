"""Two-step package/tracking-event write with compensation.

The primary package update and the event insert commit separately. If the insert
fails, the package is flagged ``error`` instead of being left ``synced`` without events.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from parcelsync.domain.errors import NotFoundError
from parcelsync.domain.model import SyncStatus, TrackingEvent, utcnow
from parcelsync.domain.saga import Saga, SagaStep

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from parcelsync.domain.model import TrackingEventRecord
    from parcelsync.domain.ports import UnitOfWorkFactory
    from parcelsync.domain.saga import SagaResult

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PrimaryFields:
    carrier: str | None = None
    external_tracking_number: str | None = None


@dataclass(slots=True)
class TrackingWriteResult:
    package_id: UUID
    saga: SagaResult
    events: list[TrackingEvent] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        return self.saga.completed

    @property
    def error(self) -> Exception | None:
        return self.saga.error


def events_from_records(
    package_id: UUID,
    carrier: str,
    records: Sequence[TrackingEventRecord],
    *,
    raw_payload: dict[str, object] | None = None,
) -> list[TrackingEvent]:
    return [
        TrackingEvent(
            package_id=package_id,
            carrier=carrier,
            event_type=record.event_type,
            description=record.description,
            location=record.location,
            timestamp=record.timestamp,
            raw_payload=raw_payload,
        )
        for record in records
    ]


class TrackingWriteSequencer:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock

    def apply_tracking_update(
        self,
        package_id: UUID,
        primary_fields: PrimaryFields,
        events: Sequence[TrackingEvent],
    ) -> TrackingWriteResult:
        """Mark the package synced, then append ``events``.

        Raises ``NotFoundError`` when the package update touches no row and
        ``InconsistentStateError`` when the compensating update also fails. Recording the
        audit entry for the final state is left to the caller.
        """

        def mark_synced() -> int:
            with self._uow_factory() as uow:
                updated = uow.repositories.packages.update_sync_fields(
                    package_id,
                    sync_status=SyncStatus.SYNCED,
                    synced_at=self._clock(),
                    carrier=primary_fields.carrier,
                    external_tracking_number=primary_fields.external_tracking_number,
                )
                if updated == 0:
                    raise NotFoundError(f"Package {package_id} not found")
                uow.commit()
            return updated

        def insert_events() -> int:
            if not events:
                return 0
            with self._uow_factory() as uow:
                uow.repositories.tracking_events.add_many(events)
                uow.commit()
            return len(events)

        def mark_error() -> None:
            with self._uow_factory() as uow:
                uow.repositories.packages.set_sync_status(package_id, SyncStatus.ERROR)
                uow.commit()

        saga = Saga(
            name=f"tracking-update:{package_id}",
            steps=[
                SagaStep("mark_synced", mark_synced, compensation=mark_error),
                SagaStep("insert_events", insert_events),
            ],
        )
        result = saga.execute()
        if not result.completed:
            log.warning(
                "Tracking events for package %s not stored (%s); package flagged as error",
                package_id,
                result.error,
            )
        return TrackingWriteResult(
            package_id=package_id,
            saga=result,
            events=list(events) if result.completed else [],
        )
