"""Translate Magaya XML into shipment records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from parcelsync.adapters.xmltools import child_text, child_texts, iter_named
from parcelsync.domain.errors import ParseError
from parcelsync.domain.model import Consignee, Party, ShipmentRecord
from parcelsync.domain.ports import MalformedShipment, ShipmentBatch

from .schema import ShipmentPayload

if TYPE_CHECKING:
    from collections.abc import Iterator
    from xml.etree.ElementTree import Element

    from parcelsync.domain.ports import BatchItem

log = getLogger(__name__)

SHIPMENT_TAG = "Shipment"


def parse_shipment(node: Element) -> ShipmentRecord:
    try:
        payload = ShipmentPayload.model_validate(child_texts(node))
    except ValidationError as exc:
        missing = sorted(
            str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing"
        )
        detail = f"missing {', '.join(missing)}" if missing else str(exc)
        raise ParseError(f"Invalid shipment node: {detail}") from exc
    return to_shipment_record(payload)


def to_shipment_record(payload: ShipmentPayload) -> ShipmentRecord:
    return ShipmentRecord(
        reference_number=payload.reference_number,
        shipment_id=payload.shipment_id,
        tracking_number=payload.tracking_number,
        description=payload.description,
        weight=payload.weight,
        dimensions=payload.dimensions,
        declared_value=payload.declared_value,
        status=payload.status,
        warehouse_location=payload.warehouse_location,
        sender=Party(name=payload.sender_name, address=payload.sender_address),
        consignee=Consignee(
            name=payload.consignee_name,
            address=payload.consignee_address,
            email=payload.consignee_email,
            phone=payload.consignee_phone,
        ),
    )


def shipment_batch(root: Element) -> ShipmentBatch:
    """Count the shipment nodes now; decode each one only when iterated."""

    nodes = list(iter_named(root, SHIPMENT_TAG))
    return ShipmentBatch(_decode(nodes), total=len(nodes))


def first_shipment(root: Element) -> ShipmentRecord | None:
    node = next(iter_named(root, SHIPMENT_TAG), None)
    return parse_shipment(node) if node is not None else None


def _decode(nodes: list[Element]) -> Iterator[BatchItem]:
    for node in nodes:
        try:
            yield parse_shipment(node)
        except ParseError as exc:
            reference = child_text(node, "ReferenceNumber")
            log.warning("Skipping undecodable shipment %s: %s", reference or "<unknown>", exc)
            yield MalformedShipment(error=exc, reference=reference)
