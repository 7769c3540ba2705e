"""Shipment reconciliation: per-shipment engine and bulk runner."""

from __future__ import annotations

from .batch import CANCELLED, BulkSync
from .customers import CustomerResolution, CustomerResolver
from .engine import ReconciliationEngine
from .results import BatchReport, Created, Failed, ShipmentOutcome, Updated

__all__ = [
    "CANCELLED",
    "BatchReport",
    "BulkSync",
    "Created",
    "CustomerResolution",
    "CustomerResolver",
    "Failed",
    "ReconciliationEngine",
    "ShipmentOutcome",
    "Updated",
]
