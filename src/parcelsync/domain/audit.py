"""Append-only sync audit log."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from parcelsync.domain.model import AuditOutcome, SyncAuditEntry, utcnow

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from parcelsync.domain.model import SyncType
    from parcelsync.domain.ports import ReconciliationUnitOfWork, UnitOfWorkFactory


def build_entry(
    sync_type: SyncType,
    outcome: AuditOutcome,
    *,
    package_id: UUID | None = None,
    session_id: UUID | None = None,
    external_reference: str | None = None,
    response_snapshot: dict[str, object] | None = None,
    error_message: str | None = None,
    recorded_at: datetime | None = None,
) -> SyncAuditEntry:
    return SyncAuditEntry(
        sync_type=sync_type,
        outcome=outcome,
        package_id=package_id,
        session_id=session_id,
        external_reference=external_reference,
        response_snapshot=response_snapshot,
        error_message=error_message,
        recorded_at=recorded_at or utcnow(),
    )


class SyncAuditLog:
    """Records attempts and answers history questions package state cannot."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock

    def record(self, entry: SyncAuditEntry) -> SyncAuditEntry:
        with self._uow_factory() as uow:
            uow.repositories.audit_entries.add(entry)
            uow.commit()
        return entry

    def record_success(
        self,
        sync_type: SyncType,
        *,
        package_id: UUID | None,
        session_id: UUID | None = None,
        external_reference: str | None = None,
        response_snapshot: dict[str, object] | None = None,
    ) -> SyncAuditEntry:
        return self.record(
            build_entry(
                sync_type,
                AuditOutcome.SUCCESS,
                package_id=package_id,
                session_id=session_id,
                external_reference=external_reference,
                response_snapshot=response_snapshot,
                recorded_at=self._clock(),
            )
        )

    def record_failure(
        self,
        sync_type: SyncType,
        error: BaseException | str,
        *,
        package_id: UUID | None = None,
        session_id: UUID | None = None,
        external_reference: str | None = None,
        response_snapshot: dict[str, object] | None = None,
    ) -> SyncAuditEntry:
        return self.record(
            build_entry(
                sync_type,
                AuditOutcome.FAILED,
                package_id=package_id,
                session_id=session_id,
                external_reference=external_reference,
                response_snapshot=response_snapshot,
                error_message=str(error),
                recorded_at=self._clock(),
            )
        )

    def history(self, package_id: UUID) -> Sequence[SyncAuditEntry]:
        with self._uow_factory() as uow:
            return self._sorted(uow.repositories.audit_entries.list_for_package(package_id))

    def for_session(self, session_id: UUID) -> Sequence[SyncAuditEntry]:
        with self._uow_factory() as uow:
            return self._sorted(uow.repositories.audit_entries.list_for_session(session_id))

    def was_synced(self, package_id: UUID, session_id: UUID) -> bool:
        """Whether ``package_id`` has a successful entry in ``session_id``."""

        with self._uow_factory() as uow:
            return _has_success(uow, package_id, session_id)

    @staticmethod
    def _sorted(entries: Sequence[SyncAuditEntry]) -> list[SyncAuditEntry]:
        return sorted(entries, key=lambda entry: entry.recorded_at)


def _has_success(uow: ReconciliationUnitOfWork, package_id: UUID, session_id: UUID) -> bool:
    return any(
        entry.session_id == session_id and entry.outcome == AuditOutcome.SUCCESS
        for entry in uow.repositories.audit_entries.list_for_package(package_id)
    )
