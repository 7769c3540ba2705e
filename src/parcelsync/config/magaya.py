"""Magaya supplier (SOAP) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

MAGAYA_TIMEOUT_SECONDS = 30.0
MAGAYA_SOAP_NAMESPACE = "urn:CSSoapService"


@dataclass(frozen=True)
class MagayaConfig:
    """Holds Magaya endpoint and credential values."""

    endpoint_url: str
    network_id: str
    user_name: str
    password: str
    resilience: ResilienceConfig


def magaya_resilience(endpoint_url: str) -> ResilienceConfig:
    # GetShipments/GetShipment are reads, so POST may be retried.
    return ResilienceConfig(
        name="magaya",
        base_url=endpoint_url,
        timeout_seconds=MAGAYA_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=3, allowed_methods=frozenset({"POST"})),
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        default_headers={"Content-Type": "text/xml; charset=utf-8"},
    )


def get_magaya_config(*, resilience: ResilienceConfig | None = None) -> MagayaConfig:
    values = require_env_vars(
        ("MAGAYA_ENDPOINT_URL", "MAGAYA_NETWORK_ID", "MAGAYA_USER", "MAGAYA_PASSWORD")
    )
    endpoint_url = values["MAGAYA_ENDPOINT_URL"]
    return MagayaConfig(
        endpoint_url=endpoint_url,
        network_id=values["MAGAYA_NETWORK_ID"],
        user_name=values["MAGAYA_USER"],
        password=values["MAGAYA_PASSWORD"],
        resilience=resilience or magaya_resilience(endpoint_url),
    )
