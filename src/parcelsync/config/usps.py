"""USPS tracking (REST+XML) configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

USPS_BASE_URL = "https://secure.shippingapis.com/ShippingAPI.dll"
USPS_TIMEOUT_SECONDS = 15.0
USPS_CACHE_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class UspsConfig:
    base_url: str
    user_id: str
    resilience: ResilienceConfig


def usps_resilience(
    base_url: str,
    *,
    cache_predicate: ShouldCacheHook | None = None,
    cache_path: str | None = None,
) -> ResilienceConfig:
    # Fetchers build a client per call, so the cache has to live on disk.
    # ``cache_path`` of None resolves to StorageConfig.http_cache_path().
    return ResilienceConfig(
        name="usps",
        base_url=base_url,
        timeout_seconds=USPS_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=CacheConfig(
            backend="sqlite",
            sqlite_path=cache_path,
            default_ttl_seconds=USPS_CACHE_TTL_SECONDS,
            should_cache=cache_predicate,
        ),
    )


def get_usps_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_predicate: ShouldCacheHook | None = None,
) -> UspsConfig:
    values = require_env_vars(("USPS_USER_ID",))
    base_url = os.getenv("USPS_BASE_URL") or USPS_BASE_URL
    return UspsConfig(
        base_url=base_url,
        user_id=values["USPS_USER_ID"],
        resilience=resilience or usps_resilience(base_url, cache_predicate=cache_predicate),
    )
