"""REST+XML client for USPS package tracking."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from parcelsync.adapters.http_resilience import ResilientClient, default_client_factory
from parcelsync.adapters.xmltools import parse_document
from parcelsync.config.usps import UspsConfig, get_usps_config
from parcelsync.domain.errors import TransportError
from parcelsync.domain.model import utcnow

from .translator import build_track_request, parse_tracking_response

if TYPE_CHECKING:
    from collections.abc import Callable

    from parcelsync.config.http_resilience import ResilienceConfig
    from parcelsync.domain.model import TrackingUpdate
    from parcelsync.domain.ports import TrackingFetcher

log = getLogger(__name__)

TRACK_API = "TrackV2"


def should_cache_body(body: bytes) -> bool:
    """Only cache answers that carry no ``<Error>`` element."""

    return b"<Error>" not in body


def _default_config() -> UspsConfig:
    return get_usps_config(cache_predicate=should_cache_body)


@dataclass(slots=True)
class UspsTrackingFetcher:
    config: UspsConfig = field(default_factory=_default_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )

    def __call__(self, tracking_number: str) -> TrackingUpdate:
        return asyncio.run(self._track(tracking_number))

    async def _track(self, tracking_number: str) -> TrackingUpdate:
        params = {
            "API": TRACK_API,
            "XML": build_track_request(self.config.user_id, tracking_number),
        }
        async with self.client_factory(self.config.resilience) as client:
            try:
                response = await client.get(self.config.base_url, params=params)
            except httpx.HTTPError as exc:
                log.error("USPS tracking request for %s failed: %s", tracking_number, exc)
                raise TransportError(f"USPS tracking request failed: {exc}") from exc

        if not response.is_success:
            raise TransportError(
                f"USPS tracking returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        root = parse_document(response.content)
        return parse_tracking_response(
            response.text,
            root,
            tracking_number,
            fetched_at=utcnow(),
        )


if TYPE_CHECKING:
    _fetcher_check: TrackingFetcher = UspsTrackingFetcher()
