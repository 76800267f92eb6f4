from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.domain.entities.plan import CountryPricing, Plan
from app.domain.entities.subscription import ChangePreview, CurrentSubscription
from app.domain.exceptions import InvalidCycleError, PlanNotAvailableError
from app.domain.services.pricing import resolve_price_quote, select_country_pricing, split_amount


def _pricing(
    country_code: str = "MX",
    *,
    monthly: str = "399.00",
    annual: str = "3990.00",
    tax_rate: str = "0.16",
    is_active: bool = True,
) -> CountryPricing:
    return CountryPricing(
        country_code=country_code,
        currency="MXN" if country_code == "MX" else "COP",
        price_monthly=Decimal(monthly),
        price_annual=Decimal(annual),
        tax_rate=Decimal(tax_rate),
        discount_annual_percent=Decimal("16.67"),
        is_active=is_active,
        is_public=True,
    )


def _plan(
    plan_id: str = "p1",
    *,
    name: str = "Pro",
    pricing: tuple[CountryPricing, ...] | None = None,
    cycles: tuple[str, ...] = ("monthly", "annual"),
) -> Plan:
    return Plan(
        id=plan_id,
        name=name,
        display_name=None,
        country_pricing=pricing if pricing is not None else (_pricing(),),
        billing_cycles=cycles,
        trial_days=0,
        is_active=True,
    )


def _current(plan_id: str = "p1", cycle: str = "monthly") -> CurrentSubscription:
    return CurrentSubscription(
        subscription_id="sub-1",
        plan_id=plan_id,
        plan_name="Pro",
        billing_cycle=cycle,
        status="active",
        payment_method_id="card-A",
        current_period_end=datetime(2025, 2, 28, tzinfo=timezone.utc),
    )


def test_tax_exclusive_monthly_quote_adds_tax_on_top():
    quote = resolve_price_quote(
        plan=_plan(),
        cycle="monthly",
        country_code="MX",
        prices_include_tax=False,
    )

    assert quote.subtotal == Decimal("399.00")
    assert quote.tax == Decimal("63.84")
    assert quote.total == Decimal("462.84")
    assert quote.currency == "MXN"
    assert quote.cycle_label == "Mes"
    assert quote.downgrade_notice is None
    assert quote.credit_line is None


def test_tax_inclusive_quote_back_calculates_subtotal():
    quote = resolve_price_quote(
        plan=_plan(),
        cycle="monthly",
        country_code="MX",
        prices_include_tax=True,
    )

    assert quote.total == Decimal("399.00")
    assert quote.subtotal == Decimal("343.97")
    assert quote.tax == Decimal("55.03")


def test_annual_cycle_uses_annual_price_and_label():
    quote = resolve_price_quote(
        plan=_plan(),
        cycle="annual",
        country_code="MX",
        prices_include_tax=False,
    )

    assert quote.subtotal == Decimal("3990.00")
    assert quote.tax == Decimal("638.40")
    assert quote.cycle_label == "Año"


@pytest.mark.parametrize("prices_include_tax", [False, True])
@pytest.mark.parametrize("amount", ["0", "0.01", "99.99", "149.50", "399", "1234.56", "9999.99"])
@pytest.mark.parametrize("rate", ["0", "0.08", "0.16", "0.19"])
def test_split_amount_keeps_total_equal_to_subtotal_plus_tax(prices_include_tax, amount, rate):
    subtotal, tax, total = split_amount(
        Decimal(amount),
        Decimal(rate),
        prices_include_tax=prices_include_tax,
    )

    assert subtotal + tax == total
    assert subtotal >= 0
    assert tax >= 0
    assert total >= 0


def test_missing_country_falls_back_to_first_active_entry():
    plan = _plan(pricing=(_pricing("CO", monthly="100"), _pricing("MX")))

    pricing = select_country_pricing(plan, "US")

    assert pricing.country_code == "CO"


def test_inactive_entries_are_skipped():
    plan = _plan(pricing=(_pricing("MX", is_active=False), _pricing("CO", monthly="100")))

    quote = resolve_price_quote(plan=plan, cycle="monthly", country_code="MX", prices_include_tax=False)

    assert quote.country_code == "CO"
    assert quote.subtotal == Decimal("100.00")


def test_strict_country_pricing_raises_plan_not_available():
    plan = _plan(pricing=(_pricing("CO"),))

    with pytest.raises(PlanNotAvailableError):
        resolve_price_quote(
            plan=plan,
            cycle="monthly",
            country_code="MX",
            prices_include_tax=False,
            strict_country=True,
        )


def test_plan_without_active_pricing_is_not_available():
    plan = _plan(pricing=(_pricing("MX", is_active=False),))

    with pytest.raises(PlanNotAvailableError):
        resolve_price_quote(plan=plan, cycle="monthly", country_code="MX", prices_include_tax=False)


def test_cycle_not_offered_by_plan_raises_invalid_cycle():
    plan = _plan(cycles=("monthly",))

    with pytest.raises(InvalidCycleError):
        resolve_price_quote(plan=plan, cycle="annual", country_code="MX", prices_include_tax=False)


def test_unknown_cycle_raises_invalid_cycle():
    with pytest.raises(InvalidCycleError):
        resolve_price_quote(plan=_plan(), cycle="weekly", country_code="MX", prices_include_tax=False)


def test_empty_cycle_list_allows_both_cycles():
    plan = _plan(cycles=())

    quote = resolve_price_quote(plan=plan, cycle="annual", country_code="MX", prices_include_tax=False)

    assert quote.cycle == "annual"


def test_cheaper_plan_produces_downgrade_notice_at_period_end():
    current_plan = _plan("p1", name="Pro")
    cheaper = _plan("p2", name="Basic", pricing=(_pricing(monthly="199.00", annual="1990.00"),))
    current = _current("p1")

    quote = resolve_price_quote(
        plan=cheaper,
        cycle="monthly",
        country_code="MX",
        prices_include_tax=False,
        current_subscription=current,
        current_plan=current_plan,
    )

    assert quote.is_downgrade
    assert quote.downgrade_notice.effective_date == current.current_period_end
    assert quote.downgrade_notice.current_plan_name == "Pro"
    assert quote.downgrade_notice.new_plan_name == "Basic"
    assert quote.downgrade_notice.new_price == Decimal("230.84")
    assert quote.credit_line is None


def test_upgrade_uses_preview_proration_as_credit_line():
    basic = _plan("p2", name="Basic", pricing=(_pricing(monthly="199.00"),))
    pro = _plan("p1", name="Pro")

    quote = resolve_price_quote(
        plan=pro,
        cycle="monthly",
        country_code="MX",
        prices_include_tax=False,
        current_subscription=_current("p2"),
        current_plan=basic,
        change_preview=ChangePreview(
            prorated_amount=Decimal("-120.456"),
            total_amount=Decimal("342.38"),
            execution_date=None,
        ),
    )

    assert quote.downgrade_notice is None
    assert quote.credit_line is not None
    assert quote.credit_line.amount == Decimal("120.46")


def test_upgrade_without_preview_omits_credit_line():
    basic = _plan("p2", name="Basic", pricing=(_pricing(monthly="199.00"),))

    quote = resolve_price_quote(
        plan=_plan("p1"),
        cycle="monthly",
        country_code="MX",
        prices_include_tax=False,
        current_subscription=_current("p2"),
        current_plan=basic,
    )

    assert quote.downgrade_notice is None
    assert quote.credit_line is None


def test_moving_from_annual_to_monthly_of_same_plan_is_a_downgrade():
    plan = _plan("p1")

    quote = resolve_price_quote(
        plan=plan,
        cycle="monthly",
        country_code="MX",
        prices_include_tax=False,
        current_subscription=_current("p1", cycle="annual"),
        current_plan=plan,
    )

    assert quote.is_downgrade


def test_same_plan_and_cycle_has_no_change_lines():
    plan = _plan("p1")

    quote = resolve_price_quote(
        plan=plan,
        cycle="monthly",
        country_code="MX",
        prices_include_tax=False,
        current_subscription=_current("p1"),
        current_plan=plan,
        change_preview=ChangePreview(prorated_amount=Decimal("10"), total_amount=None, execution_date=None),
    )

    assert quote.downgrade_notice is None
    assert quote.credit_line is None
