"""Ports for fetching shipments and tracking updates from external systems."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from parcelsync.domain.errors import ParseError
    from parcelsync.domain.model import ShipmentRecord, TrackingUpdate


@dataclass(frozen=True, slots=True)
class MalformedShipment:
    """A shipment node that could not be decoded; reconciled as a per-shipment failure."""

    error: ParseError
    reference: str | None = None


type BatchItem = ShipmentRecord | MalformedShipment


class ShipmentBatch:
    """Finite, single-pass sequence of fetched shipments.

    ``total`` is known up front; items are decoded lazily while iterating. Fetch again
    for a fresh pass.
    """

    def __init__(self, items: Iterable[BatchItem], *, total: int) -> None:
        self.total = total
        self._items = iter(items)
        self._consumed = False

    def __iter__(self) -> Iterator[BatchItem]:
        if self._consumed:
            raise RuntimeError("Shipment batch already consumed; fetch again for a new pass")
        self._consumed = True
        return self._items


@runtime_checkable
class ShipmentFetcher(Protocol):
    """Port for retrieving shipments from a supplier/logistics system."""

    def fetch_shipments(self, supplier_name: str) -> ShipmentBatch: ...

    def fetch_shipment(
        self,
        *,
        shipment_id: str | None = None,
        reference_number: str | None = None,
    ) -> ShipmentRecord: ...


@runtime_checkable
class TrackingFetcher(Protocol):
    """Callable port for retrieving the carrier's view of one tracking number."""

    def __call__(self, tracking_number: str) -> TrackingUpdate: ...


__all__ = [
    "BatchItem",
    "MalformedShipment",
    "ShipmentBatch",
    "ShipmentFetcher",
    "TrackingFetcher",
]
