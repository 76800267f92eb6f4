from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StoreProfile:
    store_id: int
    seller_id: int
    store_name: str
    payment_customer_id: str | None


@dataclass(frozen=True)
class UserAccess:
    has_access: bool
    data: dict = field(default_factory=dict)
