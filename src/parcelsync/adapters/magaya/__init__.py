"""Magaya SOAP adapter."""

from __future__ import annotations

from .client import MagayaFetcher
from .translator import parse_shipment, shipment_batch

__all__ = ["MagayaFetcher", "parse_shipment", "shipment_batch"]
