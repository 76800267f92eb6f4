from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.domain.entities.card import NewCardFields, SavedCard
from app.domain.entities.fiscal import FiscalRecord
from app.domain.entities.plan import Plan
from app.domain.entities.store import StoreProfile
from app.domain.entities.subscription import CurrentSubscription


@dataclass(frozen=True)
class DowngradeNotice:
    effective_date: datetime | None
    current_plan_name: str
    new_plan_name: str
    new_price: Decimal


@dataclass(frozen=True)
class CreditLine:
    label: str
    amount: Decimal


@dataclass(frozen=True)
class ResolvedPriceQuote:
    plan_id: str
    plan_name: str
    cycle: str
    cycle_label: str
    country_code: str
    currency: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    downgrade_notice: DowngradeNotice | None = None
    credit_line: CreditLine | None = None

    @property
    def is_downgrade(self) -> bool:
        return self.downgrade_notice is not None


@dataclass(frozen=True)
class PaymentSource:
    """Either a saved card id, new card fields, or neither (keep the subscription's current card)."""

    saved_card_id: str | None = None
    new_card: NewCardFields | None = None

    @property
    def keeps_current(self) -> bool:
        return self.saved_card_id is None and self.new_card is None


@dataclass(frozen=True)
class CheckoutIntent:
    plan: Plan
    cycle: str
    payment_source: PaymentSource
    wants_fiscal_capture: bool = False
    fiscal_data: FiscalRecord | None = None


@dataclass(frozen=True)
class CheckoutContext:
    shop_id: int
    email: str
    store: StoreProfile
    current_subscription: CurrentSubscription | None
    saved_cards: tuple[SavedCard, ...]
    has_fiscal_record: bool

    def find_card(self, card_id: str | None) -> SavedCard | None:
        if card_id is None:
            return None
        for card in self.saved_cards:
            if card.id == card_id:
                return card
        return None


@dataclass(frozen=True)
class CheckoutSubmission:
    intent: CheckoutIntent
    context: CheckoutContext
    quote: ResolvedPriceQuote
    submitted_at: datetime
    success_url: str
    return_url: str | None = None
