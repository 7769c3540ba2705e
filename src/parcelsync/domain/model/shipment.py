"""Carrier-agnostic records produced by the source adapters.

These are never persisted verbatim; the reconciliation engine consumes them immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import PackageStatus


@dataclass(frozen=True, slots=True)
class Party:
    name: str | None = None
    address: str | None = None


@dataclass(frozen=True, slots=True)
class Consignee:
    name: str
    address: str | None = None
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ShipmentRecord:
    reference_number: str
    consignee: Consignee
    shipment_id: str | None = None
    tracking_number: str | None = None
    description: str | None = None
    weight: float | None = None
    dimensions: str | None = None
    declared_value: float | None = None
    status: str | None = None
    warehouse_location: str | None = None
    sender: Party = field(default_factory=Party)

    @property
    def idempotency_key(self) -> str:
        """Carrier shipment id when present, else the reference number."""
        return self.shipment_id or self.reference_number


@dataclass(frozen=True, slots=True)
class TrackingEventRecord:
    event_type: str
    description: str
    location: str | None
    timestamp: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class TrackingUpdate:
    tracking_number: str
    carrier: str
    status: str
    normalized_status: PackageStatus
    events: tuple[TrackingEventRecord, ...] = ()
    raw_response: str | None = None
