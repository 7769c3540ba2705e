"""USPS tracking adapter."""

from __future__ import annotations

from .client import UspsTrackingFetcher, should_cache_body
from .translator import normalize_status

__all__ = ["UspsTrackingFetcher", "normalize_status", "should_cache_body"]
