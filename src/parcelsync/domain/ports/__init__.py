"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import (
    BatchItem,
    MalformedShipment,
    ShipmentBatch,
    ShipmentFetcher,
    TrackingFetcher,
)
from .persistence import (
    CustomerMatchRepository,
    CustomerRepository,
    PackageRepository,
    Repository,
    SyncAuditRepository,
    SyncSessionRepository,
    TrackingEventRepository,
)
from .unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "BatchItem",
    "CustomerMatchRepository",
    "CustomerRepository",
    "MalformedShipment",
    "PackageRepository",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "ShipmentBatch",
    "ShipmentFetcher",
    "SyncAuditRepository",
    "SyncSessionRepository",
    "TrackingEventRepository",
    "TrackingFetcher",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
