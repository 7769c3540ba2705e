"""Bulk reconciliation of one supplier's shipments into a sync session."""

from __future__ import annotations

import time
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from parcelsync.domain.errors import InconsistentStateError
from parcelsync.domain.model import SessionStatus
from parcelsync.domain.ports import MalformedShipment

from .results import BatchReport

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from parcelsync.domain.ports import BatchItem, ShipmentFetcher
    from parcelsync.domain.sessions import SyncSessionTracker

    from .engine import ReconciliationEngine

log = getLogger(__name__)

CANCELLED = "cancelled"


class BulkSync:
    """Fetch a supplier batch and reconcile it shipment by shipment.

    The fetcher is built inside the run, so a fetcher that cannot be configured fails
    the session like any other fetch failure, before any shipment is touched. Per-shipment
    failures are counted and never stop the loop. Cancellation and the batch deadline
    are checked between shipments.
    """

    def __init__(
        self,
        fetcher_factory: Callable[[], ShipmentFetcher],
        engine: ReconciliationEngine,
        tracker: SyncSessionTracker,
        *,
        batch_timeout_seconds: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher_factory = fetcher_factory
        self._engine = engine
        self._tracker = tracker
        self._timeout = batch_timeout_seconds
        self._monotonic = monotonic

    def run(self, session_id: UUID, supplier_name: str) -> BatchReport:
        started = self._monotonic()
        try:
            batch = self._fetcher_factory().fetch_shipments(supplier_name)
        except Exception as exc:
            log.error("Fetching shipments for supplier %r failed: %s", supplier_name, exc)
            self._tracker.finalize(
                session_id,
                SessionStatus.FAILED,
                failure_detail=f"{type(exc).__name__}: {exc}",
            )
            raise

        report = BatchReport(total=batch.total)
        try:
            self._tracker.set_total(session_id, batch.total)
            report.stopped_reason = self._consume(session_id, batch, report, started)
        except InconsistentStateError as exc:
            log.critical("Sync session %s halted on inconsistent state: %s", session_id, exc)
            self._tracker.finalize(session_id, SessionStatus.FAILED, failure_detail=str(exc))
            raise
        except Exception as exc:
            log.exception("Sync session %s aborted", session_id)
            self._tracker.finalize(
                session_id,
                SessionStatus.FAILED,
                failure_detail=f"{type(exc).__name__}: {exc}",
            )
            raise

        if report.stopped_reason is None:
            self._tracker.finalize(session_id, SessionStatus.COMPLETED)
        else:
            self._tracker.finalize(
                session_id,
                SessionStatus.FAILED,
                failure_detail=report.stopped_reason,
            )
        return report

    def _consume(
        self,
        session_id: UUID,
        batch: Iterable[BatchItem],
        report: BatchReport,
        started: float,
    ) -> str | None:
        for item in batch:
            if self._tracker.is_cancel_requested(session_id):
                log.info(
                    "Sync session %s cancelled after %d shipments", session_id, report.processed
                )
                return CANCELLED
            if self._timeout is not None and self._monotonic() - started > self._timeout:
                log.warning(
                    "Sync session %s exceeded %.1fs; %d of %d shipments processed",
                    session_id,
                    self._timeout,
                    report.processed,
                    report.total,
                )
                return (
                    f"batch timeout after {self._timeout:g}s "
                    f"({report.processed} of {report.total} processed)"
                )
            if isinstance(item, MalformedShipment):
                report.add(self._engine.reject(item, session_id))
            else:
                report.add(self._engine.reconcile(item, session_id))
        return None
