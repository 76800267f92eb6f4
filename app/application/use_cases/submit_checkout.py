from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from app.application.dto.checkout import (
    CheckoutCall,
    LoadCheckoutContextInput,
    SubmitCheckoutInput,
    SubmitCheckoutOutput,
)
from app.application.dto.operations import OperationResult
from app.application.ports.card_vault_port import CardVaultPort
from app.application.ports.fiscal_data_port import FiscalDataPort
from app.application.ports.subscription_port import SubscriptionPort
from app.application.use_cases.load_checkout_context import LoadCheckoutContextUseCase
from app.application.use_cases.store_common import utcnow
from app.domain.entities.checkout import CheckoutIntent, CheckoutSubmission, PaymentSource
from app.domain.exceptions import CheckoutNotAllowedError
from app.domain.services.card_validation import validate_new_card
from app.domain.services.checkout_machine import (
    ChangeSubscriptionEffect,
    CheckoutEffect,
    CheckoutState,
    CreateCardEffect,
    CreateSubscriptionEffect,
    RedirectEffect,
    SaveFiscalDataEffect,
    Step,
    StepFailed,
    StepSucceeded,
    Submitted,
    UpdatePaymentMethodEffect,
    is_noop,
    reduce,
)


logger = logging.getLogger(__name__)

_FALLBACK_MESSAGES = {
    Step.SAVE_FISCAL_DATA: "Could not save the fiscal data.",
    Step.CREATE_CARD: "Could not save the card.",
    Step.CREATE_SUBSCRIPTION: "Could not create the subscription.",
    Step.CHANGE_SUBSCRIPTION: "Could not change the subscription.",
    Step.UPDATE_PAYMENT_METHOD: "Could not update the payment method.",
}


class SubmitCheckoutUseCase:
    """Drives one submission through the checkout state machine.

    Every submission reloads the context and re-plans from the top, so a
    resubmit after a failure never resumes a half-finished chain.
    """

    def __init__(
        self,
        *,
        load_checkout_context_use_case: LoadCheckoutContextUseCase,
        subscription_port: SubscriptionPort,
        card_vault_port: CardVaultPort,
        fiscal_data_port: FiscalDataPort,
        success_url: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._load_checkout_context_use_case = load_checkout_context_use_case
        self._subscription_port = subscription_port
        self._card_vault_port = card_vault_port
        self._fiscal_data_port = fiscal_data_port
        self._success_url = success_url
        self._clock = clock

    def execute(self, command: SubmitCheckoutInput) -> SubmitCheckoutOutput:
        now = self._clock()
        if command.new_card is not None:
            validate_new_card(command.new_card, now=now)

        loaded = self._load_checkout_context_use_case.execute(
            LoadCheckoutContextInput(
                shop_id=command.shop_id,
                plan_id=command.plan_id,
                cycle=command.cycle,
                email=command.email,
                country_code=command.country_code,
            )
        )
        submission = CheckoutSubmission(
            intent=CheckoutIntent(
                plan=loaded.plan,
                cycle=command.cycle,
                payment_source=PaymentSource(
                    saved_card_id=command.saved_card_id,
                    new_card=command.new_card,
                ),
                wants_fiscal_capture=command.wants_fiscal_capture,
                fiscal_data=command.fiscal_data,
            ),
            context=loaded.context,
            quote=loaded.quote,
            submitted_at=now,
            success_url=self._success_url,
            return_url=command.return_url,
        )
        if is_noop(submission):
            raise CheckoutNotAllowedError("Nothing to change: same plan, cycle and payment method.")

        calls: list[CheckoutCall] = []
        state = CheckoutState()
        event = Submitted(submission=submission)
        while True:
            previous = state
            state, effects = reduce(state, event)
            logger.info(
                "checkout: transition shop_id=%s from=%s to=%s pending=%s",
                command.shop_id,
                previous.phase,
                state.phase,
                state.pending.value,
            )
            if not effects or isinstance(effects[0], RedirectEffect):
                break
            event = self._run(state.step, effects[0], calls)

        logger.info(
            "checkout: finished shop_id=%s phase=%s failed_step=%s calls=%s",
            command.shop_id,
            state.phase,
            state.failed_step.value if state.failed_step else None,
            len(calls),
        )
        return SubmitCheckoutOutput(
            phase=state.phase,
            redirect_url=state.redirect_url,
            error=state.error,
            failed_step=state.failed_step.value if state.failed_step else None,
            calls=tuple(calls),
        )

    def _run(self, step: Step, effect: CheckoutEffect, calls: list[CheckoutCall]) -> StepSucceeded | StepFailed:
        card_id = None
        if isinstance(effect, CreateCardEffect):
            created = self._card_vault_port.create_card(
                fields=effect.fields,
                customer_id=effect.customer_id,
                seller_id=effect.seller_id,
                store_name=effect.store_name,
                email=effect.email,
            )
            result = OperationResult(success=created.success, error=created.error)
            card_id = created.card_id
        elif isinstance(effect, SaveFiscalDataEffect):
            result = self._fiscal_data_port.save(store_id=effect.store_id, record=effect.record)
        elif isinstance(effect, CreateSubscriptionEffect):
            result = self._subscription_port.create(
                seller_id=effect.seller_id,
                shop_id=effect.shop_id,
                plan_id=effect.plan_id,
                customer_id=effect.customer_id,
                card_id=effect.card_id,
                cycle=effect.cycle,
                currency=effect.currency,
                country_code=effect.country_code,
            )
        elif isinstance(effect, ChangeSubscriptionEffect):
            result = self._subscription_port.change(
                subscription_id=effect.subscription_id,
                plan_id=effect.plan_id,
                cycle=effect.cycle,
            )
        elif isinstance(effect, UpdatePaymentMethodEffect):
            result = self._subscription_port.update_payment_method(
                subscription_id=effect.subscription_id,
                card_id=effect.card_id,
            )
        else:
            raise TypeError(f"Unsupported checkout effect: {effect!r}")

        if result.success:
            calls.append(CheckoutCall(step=step.value, success=True))
            return StepSucceeded(step=step, card_id=card_id)

        message = result.error or _FALLBACK_MESSAGES[step]
        logger.warning("checkout: step_failed step=%s error=%s", step.value, message)
        calls.append(CheckoutCall(step=step.value, success=False, message=message))
        return StepFailed(step=step, message=message)
