"""Tagged per-shipment outcomes and the batch report built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import reduce
from operator import add
from typing import TYPE_CHECKING

from parcelsync.domain.model import ProgressDelta

if TYPE_CHECKING:
    from uuid import UUID

    from parcelsync.domain.errors import SyncError
    from parcelsync.domain.model import Package


@dataclass(frozen=True, slots=True)
class Created:
    package: Package
    customer_id: UUID
    customer_created: bool = False

    @property
    def reference(self) -> str:
        return self.package.tracking_number

    @property
    def delta(self) -> ProgressDelta:
        return ProgressDelta(
            processed=1,
            created_packages=1,
            created_customers=int(self.customer_created),
        )


@dataclass(frozen=True, slots=True)
class Updated:
    package: Package
    customer_id: UUID
    customer_created: bool = False

    @property
    def reference(self) -> str:
        return self.package.tracking_number

    @property
    def delta(self) -> ProgressDelta:
        return ProgressDelta(
            processed=1,
            updated_packages=1,
            created_customers=int(self.customer_created),
        )


@dataclass(frozen=True, slots=True)
class Failed:
    reference: str | None
    error: SyncError

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"

    @property
    def delta(self) -> ProgressDelta:
        return ProgressDelta(processed=1, errors=1)


type ShipmentOutcome = Created | Updated | Failed


@dataclass(slots=True)
class BatchReport:
    """Outcomes of one bulk run, in processing order."""

    total: int = 0
    outcomes: list[ShipmentOutcome] = field(default_factory=list)
    stopped_reason: str | None = None

    def add(self, outcome: ShipmentOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def created(self) -> int:
        return sum(isinstance(o, Created) for o in self.outcomes)

    @property
    def updated(self) -> int:
        return sum(isinstance(o, Updated) for o in self.outcomes)

    @property
    def failed(self) -> int:
        return sum(isinstance(o, Failed) for o in self.outcomes)

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def delta(self) -> ProgressDelta:
        return reduce(add, (o.delta for o in self.outcomes), ProgressDelta())

    @property
    def is_consistent(self) -> bool:
        delta = self.delta
        return (
            self.processed == self.created + self.updated + self.failed
            and delta.processed
            == delta.created_packages + delta.updated_packages + delta.errors
        )
