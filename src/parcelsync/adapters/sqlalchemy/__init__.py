"""SQLAlchemy adapter package for parcelsync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCustomerMatchRepository,
    SqlAlchemyCustomerRepository,
    SqlAlchemyPackageRepository,
    SqlAlchemySyncAuditRepository,
    SqlAlchemySyncSessionRepository,
    SqlAlchemyTrackingEventRepository,
)
from .unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    configured_engine,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCustomerMatchRepository",
    "SqlAlchemyCustomerRepository",
    "SqlAlchemyPackageRepository",
    "SqlAlchemyReconciliationUnitOfWork",
    "SqlAlchemySyncAuditRepository",
    "SqlAlchemySyncSessionRepository",
    "SqlAlchemyTrackingEventRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "startup",
]
