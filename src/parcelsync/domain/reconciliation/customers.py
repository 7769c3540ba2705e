"""Consignee to customer resolution inside a reconciliation unit of work."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from parcelsync.domain.matching import MatchThresholds, match_customer
from parcelsync.domain.model import (
    Customer,
    CustomerMatchDecision,
    CustomerType,
    MappingType,
)

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from parcelsync.domain.model import Consignee
    from parcelsync.domain.ports import ReconciliationRepositories


@dataclass(slots=True, frozen=True)
class CustomerResolution:
    customer: Customer
    created: bool
    decision: CustomerMatchDecision
    rejected: list[dict[str, object]] = field(default_factory=list)


@dataclass(slots=True)
class CustomerResolver:
    thresholds: MatchThresholds = field(default_factory=MatchThresholds)

    def resolve(
        self,
        repositories: ReconciliationRepositories,
        consignee: Consignee,
        *,
        at: datetime,
        session_id: UUID | None = None,
        external_reference: str | None = None,
    ) -> CustomerResolution:
        """Match ``consignee`` against every known customer or create a guest.

        The decision is added to the unit of work alongside any new customer.
        """

        result = match_customer(consignee, repositories.customers.list_all(), self.thresholds)
        rejected = [candidate.as_snapshot() for candidate in result.rejected]

        if result.best is not None:
            customer = result.best.customer
            created = False
            mapping_type = MappingType.MATCHED
            confidence = result.best.confidence
        else:
            customer = Customer(
                full_name=consignee.name,
                address=consignee.address,
                email=consignee.email,
                phone=consignee.phone,
                customer_type=CustomerType.GUEST,
                created_at=at,
            )
            repositories.customers.add(customer)
            created = True
            mapping_type = MappingType.CREATED
            confidence = 1.0

        decision = CustomerMatchDecision(
            customer_id=customer.id,
            mapping_type=mapping_type,
            confidence=confidence,
            external_reference=external_reference,
            session_id=session_id,
            rejected_candidates=rejected,
            decided_at=at,
        )
        repositories.customer_matches.add(decision)
        return CustomerResolution(
            customer=customer,
            created=created,
            decision=decision,
            rejected=rejected,
        )
