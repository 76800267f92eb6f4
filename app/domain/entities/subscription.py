from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class CurrentSubscription:
    subscription_id: str
    plan_id: str
    plan_name: str | None
    billing_cycle: str
    status: str
    payment_method_id: str | None
    current_period_end: datetime | None
    trial_ends_at: datetime | None = None


@dataclass(frozen=True)
class ChangePreview:
    prorated_amount: Decimal | None
    total_amount: Decimal | None
    execution_date: datetime | None


def is_subscription_active(status: str) -> bool:
    return status in {"active", "trialing"}
