"""Inbound action dispatch.

Validates a loosely-typed request payload and routes it to the application, returning
``{"success": True, "data": ...}`` or ``{"success": False, "error": "..."}``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING, Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from parcelsync.config import ConfigurationError
from parcelsync.domain.errors import SyncError
from parcelsync.domain.model import SessionStatus
from parcelsync.domain.reconciliation import Created

if TYPE_CHECKING:
    from parcelsync.app import ParcelSyncApp, TrackingSyncResult
    from parcelsync.domain.reconciliation import Updated

log = getLogger(__name__)


class ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class BulkSyncRequest(ApiModel):
    action: Literal["bulk_sync_from_supplier"]
    supplier_name: str = Field(alias="supplierName", min_length=1)
    session_id: UUID | None = Field(default=None, alias="sessionId")


class GetSyncSessionRequest(ApiModel):
    action: Literal["get_sync_session"]
    session_id: UUID = Field(alias="sessionId")


class SyncPackageRequest(ApiModel):
    action: Literal["sync_package"]
    package_id: UUID = Field(alias="packageId")


class SyncTrackingRequest(ApiModel):
    action: Literal["sync_tracking"]
    tracking_number: str = Field(alias="trackingNumber", min_length=1)
    package_id: UUID | None = Field(default=None, alias="packageId")


ActionRequest = Annotated[
    BulkSyncRequest | GetSyncSessionRequest | SyncPackageRequest | SyncTrackingRequest,
    Field(discriminator="action"),
]

_REQUEST_ADAPTER: TypeAdapter[ActionRequest] = TypeAdapter(ActionRequest)


class SessionSnapshot(ApiModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    supplier_name: str
    status: SessionStatus
    total_shipments: int
    processed_shipments: int
    created_packages: int
    updated_packages: int
    created_customers: int
    error_count: int
    started_at: datetime
    completed_at: datetime | None
    heartbeat_at: datetime | None
    failure_detail: str | None
    cancel_requested: bool


def handle_request(app: ParcelSyncApp, payload: Mapping[str, object]) -> dict[str, object]:
    try:
        request = _REQUEST_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        return {"success": False, "error": f"Invalid request: {_describe(exc)}"}

    try:
        data = _dispatch(app, request)
    except (SyncError, ConfigurationError) as exc:
        log.warning("Request %s failed: %s", request.action, exc)
        return {"success": False, "error": str(exc)}
    return {"success": True, "data": data}


def _dispatch(
    app: ParcelSyncApp,
    request: BulkSyncRequest | GetSyncSessionRequest | SyncPackageRequest | SyncTrackingRequest,
) -> dict[str, object]:
    match request:
        case BulkSyncRequest():
            session_id = app.bulk_sync_from_supplier(request.supplier_name, request.session_id)
            return {"sessionId": str(session_id)}
        case GetSyncSessionRequest():
            session = app.get_sync_session(request.session_id)
            return SessionSnapshot.model_validate(session).model_dump(mode="json")
        case SyncPackageRequest():
            return _package_outcome(app.sync_package(request.package_id))
        case SyncTrackingRequest():
            return _tracking_result(app.sync_tracking(request.tracking_number, request.package_id))


def _package_outcome(outcome: Created | Updated) -> dict[str, object]:
    package = outcome.package
    return {
        "package_id": str(package.id),
        "outcome": "created" if isinstance(outcome, Created) else "updated",
        "customer_id": str(outcome.customer_id),
        "tracking_number": package.tracking_number,
        "warehouse_location": package.warehouse_location,
        "consolidation_status": package.consolidation_status,
        "sync_status": package.sync_status.value,
    }


def _tracking_result(result: TrackingSyncResult) -> dict[str, object]:
    update = result.update
    return {
        "tracking_number": update.tracking_number,
        "carrier": update.carrier,
        "status": update.status,
        "normalized_status": update.normalized_status.value,
        "events": [
            {
                "type": event.event_type,
                "description": event.description,
                "location": event.location,
                "timestamp": event.timestamp.isoformat(),
            }
            for event in update.events
        ],
        "package_id": str(result.package_id) if result.package_id else None,
        "events_stored": result.events_stored,
    }


def _describe(exc: ValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)
