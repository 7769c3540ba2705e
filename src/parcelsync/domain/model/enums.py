"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class CustomerType(StrEnum):
    REGISTERED = "registered"
    GUEST = "guest"
    PACKAGE_ONLY = "package_only"


class PackageStatus(StrEnum):
    RECEIVED = "received"
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"
    READY_FOR_PICKUP = "ready_for_pickup"
    PICKED_UP = "picked_up"


class SyncStatus(StrEnum):
    PENDING = "pending"
    SYNCED = "synced"
    ERROR = "error"


class SessionStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.RUNNING


class AuditOutcome(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"


class SyncType(StrEnum):
    BULK_SYNC = "bulk_sync_from_supplier"
    SYNC_PACKAGE = "sync_package"
    SYNC_TRACKING = "sync_tracking"


class MappingType(StrEnum):
    """How a shipment consignee was resolved to a customer."""

    MATCHED = "matched"
    CREATED = "created"
