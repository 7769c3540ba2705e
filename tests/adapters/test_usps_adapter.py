from __future__ import annotations

from collections.abc import Callable  # noqa: TC003
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003
from xml.etree import ElementTree as ET

import httpx
import pytest

from parcelsync.adapters.http_resilience import ResilientClient
from parcelsync.adapters.usps import UspsTrackingFetcher, normalize_status, should_cache_body
from parcelsync.config.http_resilience import ResilienceConfig
from parcelsync.config.usps import UspsConfig, usps_resilience
from parcelsync.domain.errors import ParseError, ProtocolFault, TransportError
from parcelsync.domain.model import PackageStatus

BASE_URL = "https://usps.example.test/ShippingAPI.dll"

TRACK_RESPONSE = """<?xml version="1.0" encoding="UTF-8"?>
<TrackResponse>
  <TrackInfo ID="9400100000000000000000">
    <Status>Out for Delivery</Status>
    <TrackSummary>
      <EventTime>8:05 am</EventTime>
      <EventDate>March 3, 2024</EventDate>
      <Event>Out for Delivery</Event>
      <EventCity>MIAMI</EventCity>
      <EventState>FL</EventState>
      <EventZIPCode>33101</EventZIPCode>
      <EventCode>OF</EventCode>
    </TrackSummary>
    <TrackDetail>
      <EventTime>6:12 pm</EventTime>
      <EventDate>March 2, 2024</EventDate>
      <Event>Arrived at USPS Regional Facility</Event>
      <EventCity>ORLANDO</EventCity>
      <EventState>FL</EventState>
      <EventCode>10</EventCode>
    </TrackDetail>
  </TrackInfo>
</TrackResponse>
"""

PLAIN_RESPONSE = """<TrackResponse>
  <TrackInfo ID="9400100000000000000001">
    <TrackSummary>Your item was delivered at 1:10 pm on March 4.</TrackSummary>
    <TrackDetail>Arrived at Post Office, March 4, 2024, 7:00 am</TrackDetail>
  </TrackInfo>
</TrackResponse>
"""

ERROR_RESPONSE = """<Error>
  <Number>-2147219283</Number>
  <Description>The tracking number may be incorrect.</Description>
</Error>
"""


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def _fetcher(handler: Callable[[httpx.Request], httpx.Response]) -> UspsTrackingFetcher:
    config = UspsConfig(
        base_url=BASE_URL,
        user_id="USER-1",
        resilience=ResilienceConfig(name="usps-test", base_url=BASE_URL),
    )
    return UspsTrackingFetcher(config=config, client_factory=_make_client_factory(handler))


def test_track_request_carries_user_and_tracking_number() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, text=TRACK_RESPONSE)

    _fetcher(handler)("9400100000000000000000")

    (request,) = captured
    assert request.method == "GET"
    assert request.url.params["API"] == "TrackV2"
    track_request = ET.fromstring(request.url.params["XML"])
    assert track_request.tag == "TrackRequest"
    assert track_request.get("USERID") == "USER-1"
    track_id = track_request.find("TrackID")
    assert track_id is not None
    assert track_id.get("ID") == "9400100000000000000000"


def test_structured_events_are_parsed() -> None:
    update = _fetcher(lambda _: httpx.Response(200, text=TRACK_RESPONSE))("9400100000000000000000")

    assert update.carrier == "USPS"
    assert update.status == "Out for Delivery"
    assert update.normalized_status is PackageStatus.READY_FOR_PICKUP
    assert update.raw_response is not None
    assert "<TrackResponse>" in update.raw_response

    summary, detail = update.events
    assert summary.event_type == "OF"
    assert summary.description == "Out for Delivery"
    assert summary.location == "MIAMI FL 33101"
    assert summary.timestamp == datetime(2024, 3, 3, 8, 5, tzinfo=UTC)
    assert detail.location == "ORLANDO FL"
    assert detail.timestamp == datetime(2024, 3, 2, 18, 12, tzinfo=UTC)


def test_plain_text_details_become_update_events() -> None:
    update = _fetcher(lambda _: httpx.Response(200, text=PLAIN_RESPONSE))("9400100000000000000001")

    assert update.status == "No tracking information available"
    assert update.normalized_status is PackageStatus.IN_TRANSIT
    assert [event.event_type for event in update.events] == ["update", "update"]
    assert all(event.location == "Unknown" for event in update.events)
    assert update.events[0].description.startswith("Your item was delivered")


def test_error_document_raises_protocol_fault() -> None:
    fetcher = _fetcher(lambda _: httpx.Response(200, text=ERROR_RESPONSE))

    with pytest.raises(ProtocolFault, match="tracking number may be incorrect") as excinfo:
        fetcher("BAD")

    assert excinfo.value.code == "-2147219283"


def test_missing_track_info_raises_parse_error() -> None:
    fetcher = _fetcher(lambda _: httpx.Response(200, text="<TrackResponse/>"))

    with pytest.raises(ParseError):
        fetcher("9400")


def test_http_error_status_raises_transport_error() -> None:
    fetcher = _fetcher(lambda _: httpx.Response(500, text="oops"))

    with pytest.raises(TransportError) as excinfo:
        fetcher("9400")

    assert excinfo.value.status_code == 500


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("Delivered, In/At Mailbox", PackageStatus.PICKED_UP),
        ("Out for Delivery", PackageStatus.READY_FOR_PICKUP),
        ("Arrived at Hub", PackageStatus.ARRIVED),
        ("Departed USPS Regional Facility", PackageStatus.ARRIVED),
        ("In Transit to Next Facility", PackageStatus.ARRIVED),
        ("Label Created", PackageStatus.IN_TRANSIT),
        (None, PackageStatus.IN_TRANSIT),
    ],
)
def test_normalize_status(status: str | None, expected: PackageStatus) -> None:
    assert normalize_status(status) is expected


def test_error_bodies_are_not_cached() -> None:
    assert should_cache_body(TRACK_RESPONSE.encode())
    assert not should_cache_body(ERROR_RESPONSE.encode())


def _cached_fetcher(
    handler: Callable[[httpx.Request], httpx.Response], cache_path: Path
) -> UspsTrackingFetcher:
    resilience = usps_resilience(
        BASE_URL, cache_predicate=should_cache_body, cache_path=str(cache_path)
    )
    config = UspsConfig(base_url=BASE_URL, user_id="USER-1", resilience=resilience)

    def factory(cfg: ResilienceConfig) -> ResilientClient:
        return ResilientClient(cfg, transport=httpx.MockTransport(handler))

    return UspsTrackingFetcher(config=config, client_factory=factory)


def test_repeated_lookup_is_served_from_cache(tmp_path: Path) -> None:
    upstream: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        upstream.append(request)
        return httpx.Response(200, text=TRACK_RESPONSE)

    fetcher = _cached_fetcher(handler, tmp_path / "http_cache.db")

    first = fetcher("9400100000000000000000")
    second = fetcher("9400100000000000000000")

    assert len(upstream) == 1
    assert second.status == first.status
    assert len(second.events) == len(first.events)


def test_error_answers_are_fetched_again(tmp_path: Path) -> None:
    upstream: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        upstream.append(request)
        return httpx.Response(200, text=ERROR_RESPONSE)

    fetcher = _cached_fetcher(handler, tmp_path / "http_cache.db")

    for _ in range(2):
        with pytest.raises(ProtocolFault):
            fetcher("BAD")

    assert len(upstream) == 2
