"""SOAP client for fetching supplier shipments from Magaya."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from parcelsync.adapters.http_resilience import ResilientClient, default_client_factory
from parcelsync.adapters.xmltools import parse_document
from parcelsync.config.magaya import MagayaConfig, get_magaya_config
from parcelsync.domain.errors import NotFoundError, TransportError

from .envelope import build_envelope, raise_for_fault, soap_action
from .translator import first_shipment, shipment_batch

if TYPE_CHECKING:
    from collections.abc import Callable
    from xml.etree.ElementTree import Element

    from parcelsync.config.http_resilience import ResilienceConfig
    from parcelsync.domain.model import ShipmentRecord
    from parcelsync.domain.ports import ShipmentBatch, ShipmentFetcher

log = getLogger(__name__)

GET_SHIPMENTS = "GetShipments"
GET_SHIPMENT = "GetShipment"


@dataclass(slots=True)
class MagayaFetcher:
    config: MagayaConfig = field(default_factory=get_magaya_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )

    def fetch_shipments(self, supplier_name: str) -> ShipmentBatch:
        root = asyncio.run(self._call(GET_SHIPMENTS, {"SupplierName": supplier_name}))
        batch = shipment_batch(root)
        log.info("Magaya returned %d shipments for supplier %r", batch.total, supplier_name)
        return batch

    def fetch_shipment(
        self,
        *,
        shipment_id: str | None = None,
        reference_number: str | None = None,
    ) -> ShipmentRecord:
        if shipment_id:
            params = {"ShipmentID": shipment_id}
        elif reference_number:
            params = {"ReferenceNumber": reference_number}
        else:
            raise ValueError("shipment_id or reference_number is required")

        root = asyncio.run(self._call(GET_SHIPMENT, params))
        shipment = first_shipment(root)
        if shipment is None:
            key = shipment_id or reference_number
            raise NotFoundError(f"Magaya has no shipment {key!r}")
        return shipment

    async def _call(self, action: str, params: dict[str, str]) -> Element:
        content = build_envelope(action, self.config, params)
        async with self.client_factory(self.config.resilience) as client:
            try:
                response = await client.post(
                    self.config.endpoint_url,
                    content=content,
                    headers={"SOAPAction": soap_action(action)},
                )
            except httpx.HTTPError as exc:
                log.error("Magaya %s request failed: %s", action, exc)
                raise TransportError(f"Magaya {action} request failed: {exc}") from exc

        if not response.is_success:
            raise TransportError(
                f"Magaya {action} returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        root = parse_document(response.content)
        raise_for_fault(root)
        return root


if TYPE_CHECKING:
    _fetcher_check: ShipmentFetcher = MagayaFetcher()
