from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.api.schemas.fiscal_data import FiscalDataRequest, FiscalDataResponse
from app.api.schemas.payment_methods import NewCardRequest, SavedCardResponse


class PlanPricingResponse(BaseModel):
    country_code: str
    currency: str
    price_monthly: Decimal
    price_annual: Decimal
    tax_rate: Decimal
    discount_annual_percent: Decimal


class PlanResponse(BaseModel):
    id: str
    name: str
    display_name: str | None
    billing_cycles: list[str]
    trial_days: int
    pricing: list[PlanPricingResponse]


class DowngradeNoticeResponse(BaseModel):
    effective_date: datetime | None
    current_plan_name: str
    new_plan_name: str
    new_price: Decimal


class CreditLineResponse(BaseModel):
    label: str
    amount: Decimal


class QuoteResponse(BaseModel):
    plan_id: str
    plan_name: str
    cycle: str
    cycle_label: str
    country_code: str
    currency: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    downgrade_notice: DowngradeNoticeResponse | None = None
    credit_line: CreditLineResponse | None = None


class CurrentSubscriptionResponse(BaseModel):
    subscription_id: str
    plan_id: str
    plan_name: str | None
    billing_cycle: str
    status: str
    payment_method_id: str | None
    current_period_end: datetime | None
    trial_ends_at: datetime | None


class CheckoutContextResponse(BaseModel):
    plan: PlanResponse
    quote: QuoteResponse
    current_subscription: CurrentSubscriptionResponse | None
    cards: list[SavedCardResponse]
    has_fiscal_record: bool
    fiscal_data: FiscalDataResponse | None


class QuoteRequest(BaseModel):
    plan_id: str = Field(..., min_length=1)
    cycle: Literal["monthly", "annual"] = Field("monthly", description="Billing cycle.")
    shop_id: int | None = Field(None, gt=0, description="When set, the quote accounts for the current subscription.")
    country: str | None = Field(None, min_length=2, max_length=2)


class SubmitCheckoutRequest(BaseModel):
    shop_id: int = Field(..., gt=0)
    plan_id: str = Field(..., min_length=1)
    cycle: Literal["monthly", "annual"]
    country: str | None = Field(None, min_length=2, max_length=2)
    saved_card_id: str | None = Field(None, description="Id of a saved card to pay with.")
    new_card: NewCardRequest | None = Field(None, description="New card fields; created before it is used.")
    wants_fiscal_capture: bool = False
    fiscal_data: FiscalDataRequest | None = None
    return_url: str | None = Field(None, description="Forwarded to the confirmation page as redirectUrl.")


class CheckoutCallResponse(BaseModel):
    step: str
    success: bool
    message: str | None = None


class SubmitCheckoutResponse(BaseModel):
    status: Literal["redirecting", "failed"]
    redirect_url: str | None = None
    step: str | None = None
    message: str | None = None
    calls: list[CheckoutCallResponse]
