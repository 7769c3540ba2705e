"""SQLAlchemy mapping metadata for the parcelsync domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)

from parcelsync.domain.model import (
    AuditOutcome,
    Customer,
    CustomerMatchDecision,
    CustomerType,
    MappingType,
    Package,
    PackageStatus,
    SessionStatus,
    SyncAuditEntry,
    SyncSession,
    SyncStatus,
    SyncType,
    TrackingEvent,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

customer_table = Table(
    "customer",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("full_name", String, nullable=False),
    Column("address", String, nullable=True),
    Column("email", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("customer_type", Enum(CustomerType, native_enum=False), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

package_table = Table(
    "package",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("tracking_number", String, nullable=False, unique=True),
    Column("customer_id", UUIDColumnType, ForeignKey("customer.id"), nullable=False, index=True),
    Column("description", Text, nullable=False, default=""),
    Column("weight", Float, nullable=True),
    Column("dimensions", String, nullable=True),
    Column("declared_value", Float, nullable=True),
    Column("status", Enum(PackageStatus, native_enum=False), nullable=False),
    Column("carrier", String, nullable=True),
    Column("external_shipment_id", String, nullable=True, index=True),
    Column("external_reference_number", String, nullable=True),
    Column("external_tracking_number", String, nullable=True),
    Column("sender_name", String, nullable=True),
    Column("sender_address", String, nullable=True),
    Column("delivery_address", String, nullable=True),
    Column("warehouse_location", String, nullable=True),
    Column("consolidation_status", String, nullable=True),
    Column("sync_status", Enum(SyncStatus, native_enum=False), nullable=False),
    Column("last_sync_timestamp", UTCDateTime(), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

tracking_event_table = Table(
    "tracking_event",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "package_id",
        UUIDColumnType,
        ForeignKey("package.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("carrier", String, nullable=False),
    Column("event_type", String, nullable=False),
    Column("description", Text, nullable=False),
    Column("location", String, nullable=True),
    Column("timestamp", UTCDateTime(), nullable=False),
    Column("raw_payload", JSON, nullable=True),
)

sync_session_table = Table(
    "sync_session",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("supplier_name", String, nullable=False),
    Column("status", Enum(SessionStatus, native_enum=False), nullable=False),
    Column("total_shipments", Integer, nullable=False, default=0),
    Column("processed_shipments", Integer, nullable=False, default=0),
    Column("created_packages", Integer, nullable=False, default=0),
    Column("updated_packages", Integer, nullable=False, default=0),
    Column("created_customers", Integer, nullable=False, default=0),
    Column("error_count", Integer, nullable=False, default=0),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("heartbeat_at", UTCDateTime(), nullable=True),
    Column("failure_detail", Text, nullable=True),
    Column("cancel_requested", Boolean, nullable=False, default=False),
)

# Audit rows outlive the packages they reference, so no foreign keys here.
sync_audit_entry_table = Table(
    "sync_audit_entry",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("sync_type", Enum(SyncType, native_enum=False), nullable=False),
    Column("outcome", Enum(AuditOutcome, native_enum=False), nullable=False),
    Column("package_id", UUIDColumnType, nullable=True, index=True),
    Column("session_id", UUIDColumnType, nullable=True, index=True),
    Column("external_reference", String, nullable=True),
    Column("response_snapshot", JSON, nullable=True),
    Column("error_message", Text, nullable=True),
    Column("recorded_at", UTCDateTime(), nullable=False),
)

customer_match_table = Table(
    "customer_match",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("customer_id", UUIDColumnType, ForeignKey("customer.id"), nullable=False),
    Column("mapping_type", Enum(MappingType, native_enum=False), nullable=False),
    Column("confidence", Float, nullable=False),
    Column("external_reference", String, nullable=True),
    Column("session_id", UUIDColumnType, nullable=True, index=True),
    Column("rejected_candidates", JSON, nullable=False),
    Column("decided_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Customer, customer_table)
    mapper_registry.map_imperatively(Package, package_table)
    mapper_registry.map_imperatively(TrackingEvent, tracking_event_table)
    mapper_registry.map_imperatively(SyncSession, sync_session_table)
    mapper_registry.map_imperatively(SyncAuditEntry, sync_audit_entry_table)
    mapper_registry.map_imperatively(CustomerMatchDecision, customer_match_table)

    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
