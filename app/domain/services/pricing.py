from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from app.domain.entities.checkout import CreditLine, DowngradeNotice, ResolvedPriceQuote
from app.domain.entities.plan import BILLING_CYCLES, CountryPricing, Plan
from app.domain.entities.subscription import ChangePreview, CurrentSubscription
from app.domain.exceptions import InvalidCycleError, PlanNotAvailableError


CENT = Decimal("0.01")

CYCLE_LABELS = {
    "monthly": "Mes",
    "annual": "Año",
}

CREDIT_LINE_LABEL = "Crédito por cambio de plan"


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def select_country_pricing(plan: Plan, country_code: str, *, strict: bool = False) -> CountryPricing:
    candidates = [entry for entry in plan.country_pricing if entry.is_active]
    wanted = country_code.strip().upper()
    for entry in candidates:
        if entry.country_code.upper() == wanted:
            return entry
    if strict or not candidates:
        raise PlanNotAvailableError(f"Plan {plan.id} is not available for country {wanted}.")
    return candidates[0]


def ensure_cycle_allowed(plan: Plan, cycle: str) -> None:
    if cycle not in BILLING_CYCLES:
        raise InvalidCycleError(f"Unknown billing cycle: {cycle}")
    if plan.billing_cycles and cycle not in plan.billing_cycles:
        raise InvalidCycleError(f"Plan {plan.id} does not offer the {cycle} cycle.")


def cycle_price(pricing: CountryPricing, cycle: str) -> Decimal:
    return pricing.price_annual if cycle == "annual" else pricing.price_monthly


def split_amount(amount: Decimal, tax_rate: Decimal, *, prices_include_tax: bool) -> tuple[Decimal, Decimal, Decimal]:
    """Returns (subtotal, tax, total), each rounded to cents, with subtotal + tax == total.

    Tax-exclusive sources add the tax on top of the listed price; tax-inclusive
    sources already embed it and the subtotal is back-calculated.
    """
    if amount < 0 or tax_rate < 0:
        raise PlanNotAvailableError("Plan pricing must not be negative.")
    if prices_include_tax:
        total = round_money(amount)
        subtotal = round_money(total / (Decimal("1") + tax_rate))
        tax = total - subtotal
        return subtotal, tax, total
    subtotal = round_money(amount)
    tax = round_money(subtotal * tax_rate)
    return subtotal, tax, subtotal + tax


def _current_subtotal(
    current_plan: Plan,
    *,
    country_code: str,
    cycle: str,
    prices_include_tax: bool,
) -> Decimal | None:
    # A retired plan may no longer carry active pricing; without it there is nothing to compare.
    try:
        current_pricing = select_country_pricing(current_plan, country_code)
    except PlanNotAvailableError:
        return None
    subtotal, _, _ = split_amount(
        cycle_price(current_pricing, cycle),
        current_pricing.tax_rate,
        prices_include_tax=prices_include_tax,
    )
    return subtotal


def resolve_price_quote(
    *,
    plan: Plan,
    cycle: str,
    country_code: str,
    prices_include_tax: bool,
    strict_country: bool = False,
    current_subscription: CurrentSubscription | None = None,
    current_plan: Plan | None = None,
    change_preview: ChangePreview | None = None,
) -> ResolvedPriceQuote:
    ensure_cycle_allowed(plan, cycle)
    pricing = select_country_pricing(plan, country_code, strict=strict_country)
    subtotal, tax, total = split_amount(
        cycle_price(pricing, cycle),
        pricing.tax_rate,
        prices_include_tax=prices_include_tax,
    )

    downgrade_notice = None
    credit_line = None
    is_change = current_subscription is not None and (
        current_subscription.plan_id != plan.id or current_subscription.billing_cycle != cycle
    )
    current_subtotal = None
    if is_change and current_plan is not None:
        current_subtotal = _current_subtotal(
            current_plan,
            country_code=pricing.country_code,
            cycle=current_subscription.billing_cycle,
            prices_include_tax=prices_include_tax,
        )
    if current_subtotal is not None:
        if subtotal < current_subtotal:
            downgrade_notice = DowngradeNotice(
                effective_date=current_subscription.current_period_end,
                current_plan_name=current_plan.label,
                new_plan_name=plan.label,
                new_price=total,
            )
        elif change_preview is not None and change_preview.prorated_amount:
            credit_line = CreditLine(
                label=CREDIT_LINE_LABEL,
                amount=round_money(abs(change_preview.prorated_amount)),
            )

    return ResolvedPriceQuote(
        plan_id=plan.id,
        plan_name=plan.label,
        cycle=cycle,
        cycle_label=CYCLE_LABELS[cycle],
        country_code=pricing.country_code,
        currency=pricing.currency,
        subtotal=subtotal,
        tax=tax,
        total=total,
        downgrade_notice=downgrade_notice,
        credit_line=credit_line,
    )
