"""Local package records and their tracking history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from .base import Entity, utcnow
from .enums import PackageStatus, SyncStatus

if TYPE_CHECKING:
    from .customer import Customer
    from .shipment import ShipmentRecord


@dataclass(eq=False, kw_only=True)
class Package(Entity):
    tracking_number: str
    customer_id: UUID
    description: str = ""
    weight: float | None = None
    dimensions: str | None = None
    declared_value: float | None = None
    status: PackageStatus = PackageStatus.RECEIVED
    carrier: str | None = None

    external_shipment_id: str | None = None
    external_reference_number: str | None = None
    external_tracking_number: str | None = None

    sender_name: str | None = None
    sender_address: str | None = None
    delivery_address: str | None = None

    warehouse_location: str | None = None
    consolidation_status: str | None = None
    sync_status: SyncStatus = SyncStatus.PENDING
    last_sync_timestamp: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_shipment(
        cls,
        shipment: ShipmentRecord,
        *,
        customer: Customer,
        synced_at: datetime,
    ) -> Package:
        return cls(
            tracking_number=shipment.reference_number,
            customer_id=customer.id,
            description=shipment.description or "",
            weight=shipment.weight,
            dimensions=shipment.dimensions,
            declared_value=shipment.declared_value,
            external_shipment_id=shipment.shipment_id,
            external_reference_number=shipment.reference_number,
            external_tracking_number=shipment.tracking_number,
            sender_name=shipment.sender.name,
            sender_address=shipment.sender.address,
            delivery_address=shipment.consignee.address,
            warehouse_location=shipment.warehouse_location,
            consolidation_status=shipment.status,
            sync_status=SyncStatus.SYNCED,
            last_sync_timestamp=synced_at,
        )

    def apply_shipment(self, shipment: ShipmentRecord, *, synced_at: datetime) -> None:
        """Overwrite the externally owned fields; the external source is authoritative."""

        self.warehouse_location = shipment.warehouse_location
        self.consolidation_status = shipment.status
        if shipment.shipment_id:
            self.external_shipment_id = shipment.shipment_id
        if shipment.tracking_number:
            self.external_tracking_number = shipment.tracking_number
        self.external_reference_number = shipment.reference_number
        self.sync_status = SyncStatus.SYNCED
        self.last_sync_timestamp = synced_at


@dataclass(eq=False, kw_only=True)
class TrackingEvent(Entity):
    """Append-only child of a package."""

    package_id: UUID
    carrier: str
    event_type: str
    description: str
    location: str | None = None
    timestamp: datetime
    raw_payload: dict[str, object] | None = None
