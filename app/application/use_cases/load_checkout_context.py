from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable

from app.application.dto.checkout import (
    LoadCheckoutContextInput,
    LoadCheckoutContextOutput,
    SavedCardView,
)
from app.application.ports.card_vault_port import CardVaultPort
from app.application.ports.fiscal_data_port import FiscalDataPort
from app.application.ports.identity_port import IdentityPort
from app.application.ports.plan_catalog_port import PlanCatalogPort
from app.application.ports.subscription_port import SubscriptionPort
from app.application.use_cases.store_common import utcnow
from app.domain.entities.card import SavedCard
from app.domain.entities.checkout import CheckoutContext
from app.domain.entities.fiscal import FiscalRecord
from app.domain.entities.plan import Plan
from app.domain.entities.subscription import ChangePreview, CurrentSubscription
from app.domain.exceptions import AccessDeniedError, AdapterError, PlanNotFoundError
from app.domain.services.card_validation import card_expiry_status
from app.domain.services.pricing import ensure_cycle_allowed, resolve_price_quote


logger = logging.getLogger(__name__)


class LoadCheckoutContextUseCase:
    """Loads everything a checkout page needs with read-only calls.

    Independent lookups run concurrently in two waves: the card listing
    needs the payment customer id from the store, and the change preview
    needs the current subscription.
    """

    def __init__(
        self,
        *,
        plan_catalog_port: PlanCatalogPort,
        subscription_port: SubscriptionPort,
        card_vault_port: CardVaultPort,
        fiscal_data_port: FiscalDataPort,
        identity_port: IdentityPort,
        default_country_code: str = "MX",
        prices_include_tax: bool = False,
        strict_country_pricing: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._plan_catalog_port = plan_catalog_port
        self._subscription_port = subscription_port
        self._card_vault_port = card_vault_port
        self._fiscal_data_port = fiscal_data_port
        self._identity_port = identity_port
        self._default_country_code = default_country_code
        self._prices_include_tax = prices_include_tax
        self._strict_country_pricing = strict_country_pricing
        self._clock = clock

    def execute(self, command: LoadCheckoutContextInput) -> LoadCheckoutContextOutput:
        country_code = (command.country_code or self._default_country_code).upper()

        with ThreadPoolExecutor(max_workers=4) as executor:
            plan_future = executor.submit(self._plan_catalog_port.get_plan, plan_id=command.plan_id)
            store_future = executor.submit(self._identity_port.get_store, store_id=command.shop_id)
            access_future = executor.submit(
                self._identity_port.get_user_access,
                store_id=command.shop_id,
                email=command.email,
            )
            current_future = executor.submit(self._subscription_port.get_current, shop_id=command.shop_id)

            access = access_future.result()
            if not access.has_access:
                raise AccessDeniedError("You do not have access to this store.")
            plan = plan_future.result()
            if plan is None:
                raise PlanNotFoundError(f"Plan {command.plan_id} not found.")
            ensure_cycle_allowed(plan, command.cycle)
            store = store_future.result()
            current = current_future.result()

            cards_future = None
            if store.payment_customer_id:
                cards_future = executor.submit(
                    self._card_vault_port.list_cards,
                    customer_id=store.payment_customer_id,
                )
            fiscal_future = executor.submit(self._load_fiscal_record, store.seller_id)
            current_plan_future = None
            preview_future = None
            if current is not None:
                current_plan_future = executor.submit(self._load_current_plan, current, plan)
                if current.plan_id != plan.id or current.billing_cycle != command.cycle:
                    preview_future = executor.submit(self._load_preview, current, plan.id, command.cycle)

            cards: list[SavedCard] = cards_future.result() if cards_future is not None else []
            fiscal_record = fiscal_future.result()
            current_plan = current_plan_future.result() if current_plan_future is not None else None
            preview = preview_future.result() if preview_future is not None else None

        quote = resolve_price_quote(
            plan=plan,
            cycle=command.cycle,
            country_code=country_code,
            prices_include_tax=self._prices_include_tax,
            strict_country=self._strict_country_pricing,
            current_subscription=current,
            current_plan=current_plan,
            change_preview=preview,
        )
        context = CheckoutContext(
            shop_id=command.shop_id,
            email=command.email,
            store=store,
            current_subscription=current,
            saved_cards=tuple(cards),
            has_fiscal_record=fiscal_record is not None,
        )
        now = self._clock()
        views = tuple(
            SavedCardView(
                card=card,
                expiry=card_expiry_status(card.expiration_month, card.expiration_year, now=now),
                submit_allowed=_submit_allowed(current, plan.id, command.cycle, card.id),
            )
            for card in cards
        )
        return LoadCheckoutContextOutput(
            plan=plan,
            quote=quote,
            context=context,
            fiscal_record=fiscal_record,
            cards=views,
            current_plan=current_plan,
        )

    def _load_fiscal_record(self, seller_id: int) -> FiscalRecord | None:
        try:
            return self._fiscal_data_port.get(seller_id=seller_id)
        except AdapterError as exc:
            logger.warning(
                "checkout_context: fiscal_read_failed seller_id=%s status=%s error=%s",
                seller_id,
                exc.status_code,
                exc.message,
            )
            return None

    def _load_current_plan(self, current: CurrentSubscription, plan: Plan) -> Plan | None:
        if current.plan_id == plan.id:
            return plan
        try:
            return self._plan_catalog_port.get_plan(plan_id=current.plan_id)
        except AdapterError as exc:
            logger.warning(
                "checkout_context: current_plan_read_failed plan_id=%s error=%s",
                current.plan_id,
                exc.message,
            )
            return None

    def _load_preview(self, current: CurrentSubscription, plan_id: str, cycle: str) -> ChangePreview | None:
        try:
            return self._subscription_port.preview_change(
                subscription_id=current.subscription_id,
                plan_id=plan_id,
                cycle=cycle,
            )
        except AdapterError as exc:
            logger.warning(
                "checkout_context: change_preview_failed subscription_id=%s error=%s",
                current.subscription_id,
                exc.message,
            )
            return None


def _submit_allowed(
    current: CurrentSubscription | None,
    plan_id: str,
    cycle: str,
    card_id: str,
) -> bool:
    if current is None:
        return True
    same_selection = current.plan_id == plan_id and current.billing_cycle == cycle
    return not (same_selection and current.payment_method_id == card_id)

