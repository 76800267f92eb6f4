from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal


BillingCycle = Literal["monthly", "annual"]

BILLING_CYCLES: tuple[str, ...] = ("monthly", "annual")


@dataclass(frozen=True)
class CountryPricing:
    country_code: str
    currency: str
    price_monthly: Decimal
    price_annual: Decimal
    tax_rate: Decimal
    discount_annual_percent: Decimal
    is_active: bool
    is_public: bool


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    display_name: str | None
    country_pricing: tuple[CountryPricing, ...]
    billing_cycles: tuple[str, ...]
    trial_days: int
    is_active: bool

    @property
    def label(self) -> str:
        return self.display_name or self.name
