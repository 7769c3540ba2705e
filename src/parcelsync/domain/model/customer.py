"""Customer identity records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .base import Entity, utcnow
from .enums import CustomerType


@dataclass(eq=False, kw_only=True)
class Customer(Entity):
    full_name: str
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    customer_type: CustomerType = CustomerType.GUEST
    created_at: datetime = field(default_factory=utcnow)

    @property
    def name(self) -> str:
        return self.full_name
