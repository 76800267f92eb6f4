from __future__ import annotations

from app.application.dto.checkout import LoadCheckoutContextInput, QuoteCheckoutInput
from app.application.ports.plan_catalog_port import PlanCatalogPort
from app.application.use_cases.load_checkout_context import LoadCheckoutContextUseCase
from app.domain.entities.checkout import ResolvedPriceQuote
from app.domain.exceptions import PlanNotFoundError
from app.domain.services.pricing import resolve_price_quote


class QuoteCheckoutUseCase:
    def __init__(
        self,
        *,
        plan_catalog_port: PlanCatalogPort,
        load_checkout_context_use_case: LoadCheckoutContextUseCase,
        default_country_code: str = "MX",
        prices_include_tax: bool = False,
        strict_country_pricing: bool = False,
    ):
        self._plan_catalog_port = plan_catalog_port
        self._load_checkout_context_use_case = load_checkout_context_use_case
        self._default_country_code = default_country_code
        self._prices_include_tax = prices_include_tax
        self._strict_country_pricing = strict_country_pricing

    def execute(self, command: QuoteCheckoutInput) -> ResolvedPriceQuote:
        # With a shop the quote accounts for the current subscription (downgrade notice, credit line).
        if command.shop_id is not None:
            loaded = self._load_checkout_context_use_case.execute(
                LoadCheckoutContextInput(
                    shop_id=command.shop_id,
                    plan_id=command.plan_id,
                    cycle=command.cycle,
                    email=command.email,
                    country_code=command.country_code,
                )
            )
            return loaded.quote

        plan = self._plan_catalog_port.get_plan(plan_id=command.plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {command.plan_id} not found.")
        return resolve_price_quote(
            plan=plan,
            cycle=command.cycle,
            country_code=(command.country_code or self._default_country_code).upper(),
            prices_include_tax=self._prices_include_tax,
            strict_country=self._strict_country_pricing,
        )
