"""Per-shipment reconciliation of external shipments into local packages."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from parcelsync.domain.audit import build_entry
from parcelsync.domain.errors import InconsistentStateError, SyncError
from parcelsync.domain.model import AuditOutcome, Package, SyncType, utcnow

from .customers import CustomerResolver
from .results import Created, Failed, Updated

if TYPE_CHECKING:
    from uuid import UUID

    from parcelsync.domain.matching import MatchThresholds
    from parcelsync.domain.model import ShipmentRecord
    from parcelsync.domain.ports import MalformedShipment, UnitOfWorkFactory
    from parcelsync.domain.sessions import SyncSessionTracker

    from .customers import CustomerResolution
    from .results import ShipmentOutcome

log = getLogger(__name__)


class ReconciliationEngine:
    """Match, upsert, and audit one shipment at a time.

    Customer resolution, the package write, the match decision, and the success audit
    entry share one unit of work. A ``SyncError`` anywhere in that unit of work yields a
    :class:`Failed` outcome and a failed audit entry; it never propagates. When a session
    tracker and session id are given, the outcome's counter delta is applied to the
    session right after the shipment is settled.
    """

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        thresholds: MatchThresholds | None = None,
        tracker: SyncSessionTracker | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._resolver = (
            CustomerResolver(thresholds) if thresholds is not None else CustomerResolver()
        )
        self._tracker = tracker
        self._clock = clock

    def reconcile(
        self,
        shipment: ShipmentRecord,
        session_id: UUID | None = None,
        *,
        sync_type: SyncType = SyncType.BULK_SYNC,
    ) -> ShipmentOutcome:
        try:
            outcome = self._reconcile(shipment, session_id, sync_type)
        except InconsistentStateError:
            raise
        except SyncError as exc:
            outcome = self._fail(shipment.reference_number, exc, session_id, sync_type)
        self._track(session_id, outcome)
        return outcome

    def reject(
        self,
        malformed: MalformedShipment,
        session_id: UUID | None = None,
        *,
        sync_type: SyncType = SyncType.BULK_SYNC,
    ) -> Failed:
        """Account for a shipment that could not be decoded."""

        outcome = self._fail(malformed.reference, malformed.error, session_id, sync_type)
        self._track(session_id, outcome)
        return outcome

    def _reconcile(
        self,
        shipment: ShipmentRecord,
        session_id: UUID | None,
        sync_type: SyncType,
    ) -> Created | Updated:
        now = self._clock()
        with self._uow_factory() as uow:
            repos = uow.repositories
            resolution = self._resolver.resolve(
                repos,
                shipment.consignee,
                at=now,
                session_id=session_id,
                external_reference=shipment.reference_number,
            )
            package = repos.packages.find_by_idempotency_keys(
                reference_number=shipment.reference_number,
                external_shipment_id=shipment.shipment_id,
            )
            if package is None:
                package = Package.from_shipment(
                    shipment,
                    customer=resolution.customer,
                    synced_at=now,
                )
                package.created_at = now
                repos.packages.add(package)
                outcome: Created | Updated = Created(
                    package=package,
                    customer_id=resolution.customer.id,
                    customer_created=resolution.created,
                )
            else:
                package.apply_shipment(shipment, synced_at=now)
                outcome = Updated(
                    package=package,
                    customer_id=resolution.customer.id,
                    customer_created=resolution.created,
                )

            repos.audit_entries.add(
                build_entry(
                    sync_type,
                    AuditOutcome.SUCCESS,
                    package_id=package.id,
                    session_id=session_id,
                    external_reference=shipment.reference_number,
                    response_snapshot=_snapshot(shipment, resolution, outcome),
                    recorded_at=now,
                )
            )
            uow.commit()
        return outcome

    def _fail(
        self,
        reference: str | None,
        error: SyncError,
        session_id: UUID | None,
        sync_type: SyncType,
    ) -> Failed:
        log.warning("Shipment %s failed to reconcile: %s", reference or "<unknown>", error)
        entry = build_entry(
            sync_type,
            AuditOutcome.FAILED,
            session_id=session_id,
            external_reference=reference,
            error_message=f"{type(error).__name__}: {error}",
            recorded_at=self._clock(),
        )
        try:
            with self._uow_factory() as uow:
                uow.repositories.audit_entries.add(entry)
                uow.commit()
        except SyncError:
            log.exception("Could not record failed audit entry for shipment %s", reference)
        return Failed(reference=reference, error=error)

    def _track(self, session_id: UUID | None, outcome: ShipmentOutcome) -> None:
        if self._tracker is not None and session_id is not None:
            self._tracker.update_progress(session_id, outcome.delta)


def _snapshot(
    shipment: ShipmentRecord,
    resolution: CustomerResolution,
    outcome: Created | Updated,
) -> dict[str, object]:
    return {
        "action": "created" if isinstance(outcome, Created) else "updated",
        "reference_number": shipment.reference_number,
        "shipment_id": shipment.shipment_id,
        "tracking_number": shipment.tracking_number,
        "status": shipment.status,
        "warehouse_location": shipment.warehouse_location,
        "customer_id": str(resolution.customer.id),
        "mapping_type": resolution.decision.mapping_type.value,
        "confidence": round(resolution.decision.confidence, 4),
        "rejected_candidates": resolution.rejected,
    }
