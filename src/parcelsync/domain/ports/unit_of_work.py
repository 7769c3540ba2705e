"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from parcelsync.domain.ports.persistence import (
        CustomerMatchRepository,
        CustomerRepository,
        PackageRepository,
        SyncAuditRepository,
        SyncSessionRepository,
        TrackingEventRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ReconciliationRepositories(RepositoryCollection):
    """Repositories touched by reconciliation, tracking updates, and session tracking."""

    customers: CustomerRepository
    packages: PackageRepository
    tracking_events: TrackingEventRepository
    sync_sessions: SyncSessionRepository
    audit_entries: SyncAuditRepository
    customer_matches: CustomerMatchRepository


type ReconciliationUnitOfWork = UnitOfWork[ReconciliationRepositories]
type UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]
