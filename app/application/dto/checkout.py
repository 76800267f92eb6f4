from __future__ import annotations

from dataclasses import dataclass

from app.domain.entities.card import NewCardFields, SavedCard
from app.domain.entities.checkout import CheckoutContext, ResolvedPriceQuote
from app.domain.entities.fiscal import FiscalRecord
from app.domain.entities.plan import Plan
from app.domain.services.card_validation import CardExpiryStatus


@dataclass(frozen=True)
class LoadCheckoutContextInput:
    shop_id: int
    plan_id: str
    cycle: str
    email: str
    country_code: str | None = None


@dataclass(frozen=True)
class SavedCardView:
    card: SavedCard
    expiry: CardExpiryStatus
    submit_allowed: bool


@dataclass(frozen=True)
class LoadCheckoutContextOutput:
    plan: Plan
    quote: ResolvedPriceQuote
    context: CheckoutContext
    fiscal_record: FiscalRecord | None
    cards: tuple[SavedCardView, ...]
    current_plan: Plan | None = None


@dataclass(frozen=True)
class QuoteCheckoutInput:
    plan_id: str
    cycle: str
    email: str
    shop_id: int | None = None
    country_code: str | None = None


@dataclass(frozen=True)
class SubmitCheckoutInput:
    shop_id: int
    plan_id: str
    cycle: str
    email: str
    country_code: str | None = None
    saved_card_id: str | None = None
    new_card: NewCardFields | None = None
    wants_fiscal_capture: bool = False
    fiscal_data: FiscalRecord | None = None
    return_url: str | None = None


@dataclass(frozen=True)
class CheckoutCall:
    step: str
    success: bool
    message: str | None = None


@dataclass(frozen=True)
class SubmitCheckoutOutput:
    phase: str
    redirect_url: str | None
    error: str | None
    failed_step: str | None
    calls: tuple[CheckoutCall, ...]

    @property
    def succeeded(self) -> bool:
        return self.phase == "redirecting"
