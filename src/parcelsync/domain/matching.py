"""Fuzzy customer matching for incoming consignees.

Scores are normalised edit-distance similarities in ``[0, 1]``; a candidate qualifies
when either its name or its address score strictly exceeds the configured threshold.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from collections.abc import Iterable

    from parcelsync.domain.model import Consignee, Customer

log = getLogger(__name__)


def similarity(left: str | None, right: str | None) -> float:
    """Case-insensitive ``1 - distance / max(len)``; 0.0 if either side is empty."""

    if not left or not right:
        return 0.0
    a = left.lower()
    b = right.lower()
    longest = max(len(a), len(b))
    return (longest - Levenshtein.distance(a, b)) / longest


def is_match(candidate: str | None, existing: str | None, threshold: float) -> bool:
    return similarity(candidate, existing) > threshold


@dataclass(slots=True, frozen=True)
class MatchThresholds:
    name: float = 0.7
    address: float = 0.8


@dataclass(slots=True, frozen=True)
class ScoredCandidate:
    customer: Customer
    name_score: float
    address_score: float

    @property
    def confidence(self) -> float:
        return max(self.name_score, self.address_score)

    def qualifies(self, thresholds: MatchThresholds) -> bool:
        return self.name_score > thresholds.name or self.address_score > thresholds.address

    def as_snapshot(self) -> dict[str, object]:
        return {
            "customer_id": str(self.customer.id),
            "full_name": self.customer.full_name,
            "name_score": round(self.name_score, 4),
            "address_score": round(self.address_score, 4),
        }


@dataclass(slots=True, frozen=True)
class MatchResult:
    best: ScoredCandidate | None
    rejected: tuple[ScoredCandidate, ...] = field(default_factory=tuple)


def score(consignee: Consignee, customer: Customer) -> ScoredCandidate:
    return ScoredCandidate(
        customer=customer,
        name_score=similarity(consignee.name, customer.full_name),
        address_score=similarity(consignee.address, customer.address),
    )


def match_customer(
    consignee: Consignee,
    candidates: Iterable[Customer],
    thresholds: MatchThresholds | None = None,
) -> MatchResult:
    """Pick the best qualifying customer for ``consignee``.

    Ranking is by combined confidence, then name score. Every other qualifying
    candidate is returned as rejected so the caller can record the decision.
    """

    thresholds = thresholds or MatchThresholds()
    qualifying = [
        scored
        for scored in (score(consignee, customer) for customer in candidates)
        if scored.qualifies(thresholds)
    ]
    if not qualifying:
        return MatchResult(best=None)

    qualifying.sort(key=lambda s: (s.confidence, s.name_score), reverse=True)
    best, *rest = qualifying
    if rest:
        log.warning(
            "Consignee %r matched %d customers; chose %s (confidence %.3f), rejected %s",
            consignee.name,
            len(qualifying),
            best.customer.id,
            best.confidence,
            ", ".join(str(s.customer.id) for s in rest),
        )
    return MatchResult(best=best, rejected=tuple(rest))
