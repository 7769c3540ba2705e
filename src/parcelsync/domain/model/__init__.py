"""Public domain model surface."""

from __future__ import annotations

from parcelsync.domain.model.base import Entity, new_id, utcnow
from parcelsync.domain.model.customer import Customer
from parcelsync.domain.model.enums import (
    AuditOutcome,
    CustomerType,
    MappingType,
    PackageStatus,
    SessionStatus,
    SyncStatus,
    SyncType,
)
from parcelsync.domain.model.package import Package, TrackingEvent
from parcelsync.domain.model.shipment import (
    Consignee,
    Party,
    ShipmentRecord,
    TrackingEventRecord,
    TrackingUpdate,
)
from parcelsync.domain.model.sync import (
    CustomerMatchDecision,
    ProgressDelta,
    SyncAuditEntry,
    SyncSession,
)

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    "utcnow",
    # enums
    "AuditOutcome",
    "CustomerType",
    "MappingType",
    "PackageStatus",
    "SessionStatus",
    "SyncStatus",
    "SyncType",
    # records
    "Customer",
    "Package",
    "TrackingEvent",
    # external
    "Consignee",
    "Party",
    "ShipmentRecord",
    "TrackingEventRecord",
    "TrackingUpdate",
    # bookkeeping
    "CustomerMatchDecision",
    "ProgressDelta",
    "SyncAuditEntry",
    "SyncSession",
]
