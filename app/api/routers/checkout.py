from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.api.deps import (
    get_load_checkout_context_use_case,
    get_quote_checkout_use_case,
    get_request_identity,
    get_submit_checkout_use_case,
)
from app.api.errors import to_http_exception
from app.api.routers.fiscal_data import to_fiscal_data_response
from app.api.routers.payment_methods import to_new_card_fields, to_saved_card_response
from app.api.schemas.checkout import (
    CheckoutCallResponse,
    CheckoutContextResponse,
    CreditLineResponse,
    CurrentSubscriptionResponse,
    DowngradeNoticeResponse,
    PlanPricingResponse,
    PlanResponse,
    QuoteRequest,
    QuoteResponse,
    SubmitCheckoutRequest,
    SubmitCheckoutResponse,
)
from app.application.dto.auth import RequestIdentity
from app.application.dto.checkout import LoadCheckoutContextInput, QuoteCheckoutInput, SubmitCheckoutInput
from app.application.use_cases.load_checkout_context import LoadCheckoutContextUseCase
from app.application.use_cases.quote_checkout import QuoteCheckoutUseCase
from app.application.use_cases.submit_checkout import SubmitCheckoutUseCase
from app.domain.entities.checkout import ResolvedPriceQuote
from app.domain.entities.plan import Plan
from app.domain.exceptions import DomainError
from app.domain.services.fiscal import build_fiscal_record


router = APIRouter()


def _plan_response(plan: Plan) -> PlanResponse:
    return PlanResponse(
        id=plan.id,
        name=plan.name,
        display_name=plan.display_name,
        billing_cycles=list(plan.billing_cycles),
        trial_days=plan.trial_days,
        pricing=[
            PlanPricingResponse(
                country_code=entry.country_code,
                currency=entry.currency,
                price_monthly=entry.price_monthly,
                price_annual=entry.price_annual,
                tax_rate=entry.tax_rate,
                discount_annual_percent=entry.discount_annual_percent,
            )
            for entry in plan.country_pricing
            if entry.is_active and entry.is_public
        ],
    )


def _quote_response(quote: ResolvedPriceQuote) -> QuoteResponse:
    notice = quote.downgrade_notice
    credit = quote.credit_line
    return QuoteResponse(
        plan_id=quote.plan_id,
        plan_name=quote.plan_name,
        cycle=quote.cycle,
        cycle_label=quote.cycle_label,
        country_code=quote.country_code,
        currency=quote.currency,
        subtotal=quote.subtotal,
        tax=quote.tax,
        total=quote.total,
        downgrade_notice=DowngradeNoticeResponse(
            effective_date=notice.effective_date,
            current_plan_name=notice.current_plan_name,
            new_plan_name=notice.new_plan_name,
            new_price=notice.new_price,
        )
        if notice
        else None,
        credit_line=CreditLineResponse(label=credit.label, amount=credit.amount) if credit else None,
    )


@router.get("/v1/checkout/context", response_model=CheckoutContextResponse)
def get_checkout_context(
    plan_id: str = Query(..., min_length=1),
    shop_id: int = Query(..., gt=0),
    cycle: Literal["monthly", "annual"] = Query("monthly"),
    country: str | None = Query(None, min_length=2, max_length=2),
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: LoadCheckoutContextUseCase = Depends(get_load_checkout_context_use_case),
):
    try:
        output = use_case.execute(
            LoadCheckoutContextInput(
                shop_id=shop_id,
                plan_id=plan_id,
                cycle=cycle,
                email=identity.email,
                country_code=country,
            )
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    current = output.context.current_subscription
    return CheckoutContextResponse(
        plan=_plan_response(output.plan),
        quote=_quote_response(output.quote),
        current_subscription=CurrentSubscriptionResponse(
            subscription_id=current.subscription_id,
            plan_id=current.plan_id,
            plan_name=current.plan_name,
            billing_cycle=current.billing_cycle,
            status=current.status,
            payment_method_id=current.payment_method_id,
            current_period_end=current.current_period_end,
            trial_ends_at=current.trial_ends_at,
        )
        if current
        else None,
        cards=[to_saved_card_response(view) for view in output.cards],
        has_fiscal_record=output.context.has_fiscal_record,
        fiscal_data=to_fiscal_data_response(output.fiscal_record) if output.fiscal_record else None,
    )


@router.post("/v1/checkout/quote", response_model=QuoteResponse)
def quote_checkout(
    req: QuoteRequest,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: QuoteCheckoutUseCase = Depends(get_quote_checkout_use_case),
):
    try:
        quote = use_case.execute(
            QuoteCheckoutInput(
                plan_id=req.plan_id,
                cycle=req.cycle,
                email=identity.email,
                shop_id=req.shop_id,
                country_code=req.country,
            )
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return _quote_response(quote)


@router.post("/v1/checkout/submit", response_model=SubmitCheckoutResponse)
def submit_checkout(
    req: SubmitCheckoutRequest,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: SubmitCheckoutUseCase = Depends(get_submit_checkout_use_case),
):
    try:
        fiscal_data = None
        if req.wants_fiscal_capture and req.fiscal_data is not None:
            fiscal_data = build_fiscal_record(
                rfc=req.fiscal_data.rfc,
                business_name=req.fiscal_data.business_name,
                postal_code=req.fiscal_data.postal_code,
                taxpayer_type=req.fiscal_data.taxpayer_type,
                tax_regime=req.fiscal_data.tax_regime,
            )
        output = use_case.execute(
            SubmitCheckoutInput(
                shop_id=req.shop_id,
                plan_id=req.plan_id,
                cycle=req.cycle,
                email=identity.email,
                country_code=req.country,
                saved_card_id=req.saved_card_id,
                new_card=to_new_card_fields(req.new_card) if req.new_card else None,
                wants_fiscal_capture=req.wants_fiscal_capture,
                fiscal_data=fiscal_data,
                return_url=req.return_url,
            )
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    calls = [
        CheckoutCallResponse(step=call.step, success=call.success, message=call.message)
        for call in output.calls
    ]
    if output.succeeded:
        return SubmitCheckoutResponse(status="redirecting", redirect_url=output.redirect_url, calls=calls)
    return SubmitCheckoutResponse(
        status="failed",
        step=output.failed_step,
        message=output.error,
        calls=calls,
    )
