"""Sync session tracking.

Every mutation runs in its own short unit of work so progress is visible to pollers
while a bulk job is still running.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from parcelsync.domain.errors import NotFoundError
from parcelsync.domain.model import SessionStatus, SyncSession, utcnow

if TYPE_CHECKING:
    from uuid import UUID

    from parcelsync.domain.model import ProgressDelta
    from parcelsync.domain.ports import ReconciliationUnitOfWork, UnitOfWorkFactory

log = getLogger(__name__)


class SyncSessionTracker:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock

    def create_session(
        self,
        supplier_name: str,
        estimated_total: int = 0,
        *,
        session_id: UUID | None = None,
    ) -> UUID:
        now = self._clock()
        session = SyncSession(
            supplier_name=supplier_name,
            total_shipments=estimated_total,
            started_at=now,
            heartbeat_at=now,
        )
        if session_id is not None:
            session.id = session_id
        with self._uow_factory() as uow:
            uow.repositories.sync_sessions.add(session)
            uow.commit()
        log.info("Sync session %s started for supplier %r", session.id, supplier_name)
        return session.id

    def get_session(self, session_id: UUID) -> SyncSession:
        with self._uow_factory() as uow:
            return self._load(uow, session_id)

    def update_progress(self, session_id: UUID, delta: ProgressDelta) -> SyncSession:
        with self._uow_factory() as uow:
            session = self._load(uow, session_id)
            session.apply(delta, at=self._clock())
            uow.commit()
            return session

    def set_total(self, session_id: UUID, total: int) -> None:
        with self._uow_factory() as uow:
            self._load(uow, session_id).set_total(total, at=self._clock())
            uow.commit()

    def request_cancel(self, session_id: UUID) -> None:
        with self._uow_factory() as uow:
            self._load(uow, session_id).request_cancel()
            uow.commit()
        log.info("Cancellation requested for sync session %s", session_id)

    def is_cancel_requested(self, session_id: UUID) -> bool:
        return self.get_session(session_id).cancel_requested

    def finalize(
        self,
        session_id: UUID,
        status: SessionStatus,
        failure_detail: str | None = None,
    ) -> SyncSession:
        """Move a running session into ``status``; terminal sessions raise ``SessionStateError``."""

        with self._uow_factory() as uow:
            session = self._load(uow, session_id)
            now = self._clock()
            if status is SessionStatus.COMPLETED:
                session.complete(at=now)
            elif status is SessionStatus.FAILED:
                session.fail(failure_detail or "unknown failure", at=now)
            else:
                raise ValueError(f"Cannot finalize a session as {status.value!r}")
            uow.commit()

        log.info(
            "Sync session %s %s: processed=%d created=%d updated=%d errors=%d%s",
            session.id,
            session.status.value,
            session.processed_shipments,
            session.created_packages,
            session.updated_packages,
            session.error_count,
            f" ({session.failure_detail})" if session.failure_detail else "",
        )
        return session

    @staticmethod
    def _load(uow: ReconciliationUnitOfWork, session_id: UUID) -> SyncSession:
        session = uow.repositories.sync_sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Sync session {session_id} not found")
        return session
