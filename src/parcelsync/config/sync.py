"""Reconciliation defaults for bulk and single-shipment syncs."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_float, optional_env_int
from .errors import ConfigurationError

# Heuristic customer-matching thresholds; tune per supplier data quality.
DEFAULT_NAME_THRESHOLD = 0.7
DEFAULT_ADDRESS_THRESHOLD = 0.8
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True, slots=True)
class SyncConfig:
    name_threshold: float = DEFAULT_NAME_THRESHOLD
    address_threshold: float = DEFAULT_ADDRESS_THRESHOLD
    batch_timeout_seconds: float | None = None
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self) -> None:
        for name, value in (
            ("name_threshold", self.name_threshold),
            ("address_threshold", self.address_threshold),
        ):
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {value}")
        if self.batch_timeout_seconds is not None and self.batch_timeout_seconds <= 0:
            raise ConfigurationError("batch_timeout_seconds must be positive")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")


def _env_threshold(name: str, default: float) -> float:
    value = optional_env_float(name, default)
    return default if value is None else value


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        name_threshold=_env_threshold("PARCELSYNC_NAME_THRESHOLD", DEFAULT_NAME_THRESHOLD),
        address_threshold=_env_threshold(
            "PARCELSYNC_ADDRESS_THRESHOLD", DEFAULT_ADDRESS_THRESHOLD
        ),
        batch_timeout_seconds=optional_env_float("PARCELSYNC_BATCH_TIMEOUT_SECONDS", None),
        max_workers=optional_env_int("PARCELSYNC_MAX_WORKERS", DEFAULT_MAX_WORKERS),
    )
