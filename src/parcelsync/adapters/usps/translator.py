"""Translate USPS TrackV2 XML into a carrier-agnostic tracking update."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING
from xml.etree import ElementTree as ET

from pydantic import ValidationError

from parcelsync.adapters.xmltools import child_text, child_texts, find_named, iter_named
from parcelsync.domain.errors import ParseError, ProtocolFault
from parcelsync.domain.model import PackageStatus, TrackingEventRecord, TrackingUpdate

from .schema import ErrorPayload, TrackDetailPayload

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element

log = getLogger(__name__)

CARRIER = "USPS"
NO_STATUS = "No tracking information available"
PLAIN_EVENT_TYPE = "update"
UNKNOWN_LOCATION = "Unknown"

_TIMESTAMP_FORMATS = (
    "%B %d, %Y %I:%M %p",
    "%B %d, %Y %I:%M%p",
    "%B %d, %Y",
)


def build_track_request(user_id: str, tracking_number: str) -> str:
    request = ET.Element("TrackRequest", USERID=user_id)
    ET.SubElement(request, "TrackID", ID=tracking_number)
    return ET.tostring(request, encoding="unicode")


def normalize_status(status: str | None) -> PackageStatus:
    """Map free-text carrier status onto the package lifecycle."""

    text = (status or "").lower()
    if "delivered" in text:
        return PackageStatus.PICKED_UP
    if "out for delivery" in text:
        return PackageStatus.READY_FOR_PICKUP
    if "arrived" in text or "facility" in text:
        return PackageStatus.ARRIVED
    return PackageStatus.IN_TRANSIT


def raise_for_error(root: Element) -> None:
    error = find_named(root, "Error")
    if error is None:
        return
    payload = ErrorPayload.model_validate(child_texts(error))
    raise ProtocolFault(payload.description, code=payload.number)


def parse_tracking_response(
    body: str,
    root: Element,
    tracking_number: str,
    *,
    fetched_at: datetime,
) -> TrackingUpdate:
    raise_for_error(root)
    info = find_named(root, "TrackInfo")
    if info is None:
        raise ParseError("USPS response has no TrackInfo element")

    status = child_text(info, "Status") or child_text(info, "StatusSummary") or NO_STATUS
    events = tuple(
        _parse_detail(node, fetched_at=fetched_at)
        for name in ("TrackSummary", "TrackDetail")
        for node in iter_named(info, name)
    )
    return TrackingUpdate(
        tracking_number=info.get("ID") or tracking_number,
        carrier=CARRIER,
        status=status,
        normalized_status=normalize_status(status),
        events=events,
        raw_response=body,
    )


def _parse_detail(node: Element, *, fetched_at: datetime) -> TrackingEventRecord:
    if len(node) == 0:
        # Legacy responses render each detail as a single sentence.
        return TrackingEventRecord(
            event_type=PLAIN_EVENT_TYPE,
            description=(node.text or "").strip(),
            location=UNKNOWN_LOCATION,
            timestamp=fetched_at,
        )
    try:
        payload = TrackDetailPayload.model_validate(child_texts(node))
    except ValidationError as exc:
        raise ParseError(f"Invalid USPS tracking detail: {exc}") from exc
    return TrackingEventRecord(
        event_type=payload.event_code or PLAIN_EVENT_TYPE,
        description=payload.event,
        location=payload.location or UNKNOWN_LOCATION,
        timestamp=_parse_timestamp(payload.event_date, payload.event_time) or fetched_at,
    )


def _parse_timestamp(date: str | None, time: str | None) -> datetime | None:
    if not date:
        return None
    text = f"{date} {time}" if time else date
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    log.debug("Unrecognised USPS timestamp %r", text)
    return None
