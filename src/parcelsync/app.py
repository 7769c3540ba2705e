"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from parcelsync.adapters.magaya import MagayaFetcher
from parcelsync.adapters.sqlalchemy import (
    SqlAlchemyReconciliationUnitOfWork,
    configured_engine,
    startup,
)
from parcelsync.adapters.usps import UspsTrackingFetcher
from parcelsync.config import SyncConfig, get_sync_config
from parcelsync.domain.audit import SyncAuditLog
from parcelsync.domain.errors import (
    InconsistentStateError,
    NotFoundError,
    PersistenceError,
    SyncError,
)
from parcelsync.domain.matching import MatchThresholds
from parcelsync.domain.model import SyncType, utcnow
from parcelsync.domain.reconciliation import BulkSync, Failed, ReconciliationEngine
from parcelsync.domain.sessions import SyncSessionTracker
from parcelsync.domain.tracking import (
    PrimaryFields,
    TrackingWriteSequencer,
    events_from_records,
)
from parcelsync.jobs import SyncJobRunner

if TYPE_CHECKING:
    from uuid import UUID

    from parcelsync.domain.model import SyncSession, TrackingUpdate
    from parcelsync.domain.ports import ShipmentFetcher, TrackingFetcher, UnitOfWorkFactory
    from parcelsync.domain.reconciliation import BatchReport, Created, Updated

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TrackingSyncResult:
    update: TrackingUpdate
    package_id: UUID | None = None
    events_stored: int = 0


@dataclass
class ParcelSyncApp:
    """Wires the reconciliation core to its collaborators.

    Fetchers are built on first use, so commands that never talk to a carrier do not
    require carrier credentials.
    """

    unit_of_work_factory: UnitOfWorkFactory
    sync_config: SyncConfig = field(default_factory=SyncConfig)
    shipment_fetcher_factory: Callable[[], ShipmentFetcher] = MagayaFetcher
    tracking_fetcher_factory: Callable[[], TrackingFetcher] = UspsTrackingFetcher
    clock: Callable[[], datetime] = utcnow

    tracker: SyncSessionTracker = field(init=False)
    audit: SyncAuditLog = field(init=False)
    engine: ReconciliationEngine = field(init=False)
    sequencer: TrackingWriteSequencer = field(init=False)
    jobs: SyncJobRunner = field(init=False)
    _shipment_fetcher: ShipmentFetcher | None = field(default=None, init=False)
    _tracking_fetcher: TrackingFetcher | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        uow = self.unit_of_work_factory
        self.tracker = SyncSessionTracker(uow, clock=self.clock)
        self.audit = SyncAuditLog(uow, clock=self.clock)
        self.engine = ReconciliationEngine(
            uow,
            thresholds=MatchThresholds(
                name=self.sync_config.name_threshold,
                address=self.sync_config.address_threshold,
            ),
            tracker=self.tracker,
            clock=self.clock,
        )
        self.sequencer = TrackingWriteSequencer(uow, clock=self.clock)
        self.jobs = SyncJobRunner(self.run_bulk_sync, max_workers=self.sync_config.max_workers)

    @property
    def shipment_fetcher(self) -> ShipmentFetcher:
        if self._shipment_fetcher is None:
            self._shipment_fetcher = self.shipment_fetcher_factory()
        return self._shipment_fetcher

    @property
    def tracking_fetcher(self) -> TrackingFetcher:
        if self._tracking_fetcher is None:
            self._tracking_fetcher = self.tracking_fetcher_factory()
        return self._tracking_fetcher

    def close(self) -> None:
        self.jobs.shutdown()

    # bulk -----------------------------------------------------------------

    def bulk_sync_from_supplier(
        self,
        supplier_name: str,
        session_id: UUID | None = None,
    ) -> UUID:
        """Create a session and queue the import; returns before any shipment is fetched."""

        created = self.tracker.create_session(supplier_name, session_id=session_id)
        self.jobs.submit(created, supplier_name)
        return created

    def run_bulk_sync(self, session_id: UUID, supplier_name: str) -> BatchReport:
        bulk = BulkSync(
            lambda: self.shipment_fetcher,
            self.engine,
            self.tracker,
            batch_timeout_seconds=self.sync_config.batch_timeout_seconds,
        )
        return bulk.run(session_id, supplier_name)

    def get_sync_session(self, session_id: UUID) -> SyncSession:
        return self.tracker.get_session(session_id)

    def cancel_sync_session(self, session_id: UUID) -> None:
        self.tracker.request_cancel(session_id)

    # single package -------------------------------------------------------

    def sync_package(self, package_id: UUID) -> Created | Updated:
        with self.unit_of_work_factory() as uow:
            package = uow.repositories.packages.get(package_id)
            if package is None:
                raise NotFoundError(f"Package {package_id} not found")
            shipment_id = package.external_shipment_id
            reference = package.external_reference_number or package.tracking_number

        try:
            shipment = self.shipment_fetcher.fetch_shipment(
                shipment_id=shipment_id,
                reference_number=reference,
            )
        except SyncError as exc:
            self.audit.record_failure(
                SyncType.SYNC_PACKAGE,
                exc,
                package_id=package_id,
                external_reference=reference,
            )
            raise

        outcome = self.engine.reconcile(shipment, sync_type=SyncType.SYNC_PACKAGE)
        if isinstance(outcome, Failed):
            raise outcome.error
        return outcome

    # carrier tracking -----------------------------------------------------

    def sync_tracking(
        self,
        tracking_number: str,
        package_id: UUID | None = None,
    ) -> TrackingSyncResult:
        """Fetch carrier tracking and, when ``package_id`` is given, store it.

        Every attempt against a package leaves one audit entry describing the final state.
        """

        try:
            update = self.tracking_fetcher(tracking_number)
        except SyncError as exc:
            if package_id is not None:
                self.audit.record_failure(
                    SyncType.SYNC_TRACKING,
                    exc,
                    package_id=package_id,
                    external_reference=tracking_number,
                )
            raise

        if package_id is None:
            return TrackingSyncResult(update=update)

        events = events_from_records(
            package_id,
            update.carrier,
            update.events,
            raw_payload={"original_response": update.raw_response},
        )
        try:
            result = self.sequencer.apply_tracking_update(
                package_id,
                PrimaryFields(carrier=update.carrier, external_tracking_number=tracking_number),
                events,
            )
        except (NotFoundError, InconsistentStateError) as exc:
            self.audit.record_failure(
                SyncType.SYNC_TRACKING,
                exc,
                package_id=package_id,
                external_reference=tracking_number,
            )
            raise

        snapshot: dict[str, object] = {
            "status": update.status,
            "normalized_status": update.normalized_status.value,
            "events": len(events),
        }
        if not result.consistent:
            self.audit.record_failure(
                SyncType.SYNC_TRACKING,
                result.error or "tracking events not stored",
                package_id=package_id,
                external_reference=tracking_number,
                response_snapshot=snapshot,
            )
            raise PersistenceError(
                f"Tracking events for package {package_id} were not stored; "
                "package flagged as error"
            ) from result.error

        self.audit.record_success(
            SyncType.SYNC_TRACKING,
            package_id=package_id,
            external_reference=tracking_number,
            response_snapshot=snapshot,
        )
        return TrackingSyncResult(update=update, package_id=package_id, events_stored=len(events))


def build_default_app(*, database_uri: str | None = None) -> ParcelSyncApp:
    """Start the SQLAlchemy adapter and assemble the app from environment configuration."""

    if configured_engine() is None:
        startup(database_uri=database_uri)
    return ParcelSyncApp(
        unit_of_work_factory=SqlAlchemyReconciliationUnitOfWork,
        sync_config=get_sync_config(),
    )
