"""Checkout state machine.

A submission is turned into an ordered plan of remote steps by
``plan_checkout``; ``reduce`` then walks that plan one step at a time.
Each call to ``reduce`` returns the next state plus the effects the
driver has to run. At most one effect is ever returned, so at most one
mutating call is in flight, and every path ends in ``redirecting`` or
``failed``.

Decision table, evaluated in order:

1. same plan, same cycle, same (or no) payment change -> no-op
2. same plan, same cycle, payment changed -> [create card] -> update payment method
3. fiscal capture wanted and no fiscal record -> save fiscal data first, then 4-6
4. current subscription, plan or cycle changed -> [create card] -> [update payment method] -> change subscription
5. first subscription with a saved card -> create subscription
6. first subscription with a new card -> create card -> create subscription
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Literal, Union

from app.domain.entities.checkout import CheckoutSubmission
from app.domain.entities.fiscal import FiscalRecord
from app.domain.entities.card import NewCardFields
from app.domain.exceptions import CheckoutValidationError
from app.domain.services.redirect import SuccessSummary, build_success_url


CheckoutPhase = Literal[
    "idle",
    "saving_fiscal_data",
    "creating_card",
    "creating_subscription",
    "changing_subscription",
    "updating_payment_method",
    "redirecting",
    "failed",
]


class Step(str, Enum):
    SAVE_FISCAL_DATA = "save_fiscal_data"
    CREATE_CARD = "create_card"
    CREATE_SUBSCRIPTION = "create_subscription"
    CHANGE_SUBSCRIPTION = "change_subscription"
    UPDATE_PAYMENT_METHOD = "update_payment_method"


STEP_PHASES: dict[Step, CheckoutPhase] = {
    Step.SAVE_FISCAL_DATA: "saving_fiscal_data",
    Step.CREATE_CARD: "creating_card",
    Step.CREATE_SUBSCRIPTION: "creating_subscription",
    Step.CHANGE_SUBSCRIPTION: "changing_subscription",
    Step.UPDATE_PAYMENT_METHOD: "updating_payment_method",
}

SUBSCRIPTION_MUTATING_STEPS = frozenset(
    {Step.CREATE_SUBSCRIPTION, Step.CHANGE_SUBSCRIPTION, Step.UPDATE_PAYMENT_METHOD}
)


class PendingOperation(str, Enum):
    NONE = "none"
    AWAITING_CARD_THEN_SUBSCRIBE = "awaiting_card_then_subscribe"
    AWAITING_CARD_THEN_PAYMENT_UPDATE = "awaiting_card_then_payment_update"
    AWAITING_FISCAL_THEN_SUBSCRIBE = "awaiting_fiscal_then_subscribe"
    AWAITING_FISCAL_THEN_CREATE_THEN_SUBSCRIBE = "awaiting_fiscal_then_create_then_subscribe"
    AWAITING_FISCAL_THEN_CHANGE_PLAN = "awaiting_fiscal_then_change_plan"
    AWAITING_PAYMENT_UPDATE_THEN_CHANGE_PLAN = "awaiting_payment_update_then_change_plan"
    AWAITING_PAYMENT_UPDATE_THEN_REDIRECT = "awaiting_payment_update_then_redirect"


# Effects


@dataclass(frozen=True)
class SaveFiscalDataEffect:
    store_id: int
    record: FiscalRecord


@dataclass(frozen=True)
class CreateCardEffect:
    fields: NewCardFields
    customer_id: str | None
    seller_id: int
    store_name: str
    email: str


@dataclass(frozen=True)
class CreateSubscriptionEffect:
    seller_id: int
    shop_id: int
    plan_id: str
    customer_id: str | None
    card_id: str
    cycle: str
    currency: str
    country_code: str


@dataclass(frozen=True)
class ChangeSubscriptionEffect:
    subscription_id: str
    plan_id: str | None
    cycle: str


@dataclass(frozen=True)
class UpdatePaymentMethodEffect:
    subscription_id: str
    card_id: str


@dataclass(frozen=True)
class RedirectEffect:
    url: str


CheckoutEffect = Union[
    SaveFiscalDataEffect,
    CreateCardEffect,
    CreateSubscriptionEffect,
    ChangeSubscriptionEffect,
    UpdatePaymentMethodEffect,
    RedirectEffect,
]


# Events


@dataclass(frozen=True)
class Submitted:
    submission: CheckoutSubmission


@dataclass(frozen=True)
class StepSucceeded:
    step: Step
    card_id: str | None = None


@dataclass(frozen=True)
class StepFailed:
    step: Step
    message: str


@dataclass(frozen=True)
class ErrorDismissed:
    pass


CheckoutEvent = Union[Submitted, StepSucceeded, StepFailed, ErrorDismissed]


@dataclass(frozen=True)
class CheckoutState:
    phase: CheckoutPhase = "idle"
    submission: CheckoutSubmission | None = None
    step: Step | None = None
    remaining: tuple[Step, ...] = ()
    card_id: str | None = None
    error: str | None = None
    failed_step: Step | None = None
    redirect_url: str | None = None

    @property
    def in_flight(self) -> bool:
        return self.step is not None

    @property
    def is_terminal(self) -> bool:
        return self.phase in ("redirecting", "failed")

    @property
    def pending(self) -> PendingOperation:
        return pending_operation(self.step, self.remaining)


def pending_operation(step: Step | None, remaining: tuple[Step, ...]) -> PendingOperation:
    if step is None or not remaining:
        if step is Step.UPDATE_PAYMENT_METHOD:
            return PendingOperation.AWAITING_PAYMENT_UPDATE_THEN_REDIRECT
        return PendingOperation.NONE

    if step is Step.SAVE_FISCAL_DATA:
        if Step.CHANGE_SUBSCRIPTION in remaining:
            return PendingOperation.AWAITING_FISCAL_THEN_CHANGE_PLAN
        if remaining[0] is Step.CREATE_CARD:
            return PendingOperation.AWAITING_FISCAL_THEN_CREATE_THEN_SUBSCRIBE
        return PendingOperation.AWAITING_FISCAL_THEN_SUBSCRIBE
    if step is Step.CREATE_CARD:
        if remaining[0] is Step.UPDATE_PAYMENT_METHOD:
            return PendingOperation.AWAITING_CARD_THEN_PAYMENT_UPDATE
        return PendingOperation.AWAITING_CARD_THEN_SUBSCRIBE
    if step is Step.UPDATE_PAYMENT_METHOD:
        return PendingOperation.AWAITING_PAYMENT_UPDATE_THEN_CHANGE_PLAN
    return PendingOperation.NONE


def plan_checkout(submission: CheckoutSubmission) -> tuple[Step, ...]:
    intent = submission.intent
    context = submission.context
    current = context.current_subscription
    source = intent.payment_source

    if source.saved_card_id is not None and source.new_card is not None:
        raise CheckoutValidationError(
            "Choose either a saved card or a new card.",
            errors={"payment_source": "Only one payment method can be used."},
        )
    if current is None and source.keeps_current:
        raise CheckoutValidationError(
            "A payment method is required.",
            errors={"payment_source": "Select a saved card or enter a new one."},
        )
    if source.saved_card_id is not None:
        card = context.find_card(source.saved_card_id)
        if card is None:
            raise CheckoutValidationError(
                "The selected card is not available.",
                errors={"payment_source": "Select one of the store's saved cards."},
            )
        if card.is_expired(submission.submitted_at):
            raise CheckoutValidationError(
                "The selected card is expired.",
                errors={"payment_source": "Select a card that has not expired."},
            )

    new_card: tuple[Step, ...] = (Step.CREATE_CARD,) if source.new_card is not None else ()

    payment_changed = False
    if current is not None:
        payment_changed = source.new_card is not None or (
            source.saved_card_id is not None and source.saved_card_id != current.payment_method_id
        )
        if intent.plan.id == current.plan_id and intent.cycle == current.billing_cycle:
            if not payment_changed:
                return ()
            return new_card + (Step.UPDATE_PAYMENT_METHOD,)

    steps: tuple[Step, ...] = ()
    if intent.wants_fiscal_capture and not context.has_fiscal_record:
        if intent.fiscal_data is None:
            raise CheckoutValidationError(
                "Fiscal data is required.",
                errors={"fiscal_data": "Fill in the fiscal data or uncheck the option."},
            )
        steps += (Step.SAVE_FISCAL_DATA,)

    if current is not None:
        if payment_changed:
            steps += new_card + (Step.UPDATE_PAYMENT_METHOD,)
        return steps + (Step.CHANGE_SUBSCRIPTION,)

    return steps + new_card + (Step.CREATE_SUBSCRIPTION,)


def is_noop(submission: CheckoutSubmission) -> bool:
    return plan_checkout(submission) == ()


def reduce(state: CheckoutState, event: CheckoutEvent) -> tuple[CheckoutState, tuple[CheckoutEffect, ...]]:
    if isinstance(event, Submitted):
        if state.in_flight or state.phase == "redirecting":
            return state, ()
        steps = plan_checkout(event.submission)
        if not steps:
            return CheckoutState(), ()
        return _start_step(
            CheckoutState(submission=event.submission),
            steps[0],
            steps[1:],
        )

    if isinstance(event, StepSucceeded):
        _ensure_current_step(state, event.step)
        card_id = state.card_id
        if event.step is Step.CREATE_CARD:
            if not event.card_id:
                return _fail(state, event.step, "The card was created without an id."), ()
            card_id = event.card_id
        state = replace(state, card_id=card_id)
        if state.remaining:
            return _start_step(state, state.remaining[0], state.remaining[1:])
        url = _success_url(state)
        return (
            replace(state, phase="redirecting", step=None, remaining=(), redirect_url=url),
            (RedirectEffect(url=url),),
        )

    if isinstance(event, StepFailed):
        _ensure_current_step(state, event.step)
        return _fail(state, event.step, event.message), ()

    if isinstance(event, ErrorDismissed):
        if state.phase == "failed":
            return CheckoutState(), ()
        return state, ()

    raise TypeError(f"Unsupported checkout event: {event!r}")


def _ensure_current_step(state: CheckoutState, step: Step) -> None:
    if state.step is not step:
        raise ValueError(f"Received result for {step.value} while in phase {state.phase}.")


def _fail(state: CheckoutState, step: Step, message: str) -> CheckoutState:
    return replace(
        state,
        phase="failed",
        step=None,
        remaining=(),
        error=message,
        failed_step=step,
    )


def _start_step(
    state: CheckoutState,
    step: Step,
    remaining: tuple[Step, ...],
) -> tuple[CheckoutState, tuple[CheckoutEffect, ...]]:
    next_state = replace(
        state,
        phase=STEP_PHASES[step],
        step=step,
        remaining=remaining,
        error=None,
        failed_step=None,
    )
    return next_state, (_effect_for(next_state, step),)


def _effect_for(state: CheckoutState, step: Step) -> CheckoutEffect:
    submission = state.submission
    if submission is None:
        raise ValueError("Checkout state has no submission.")
    intent = submission.intent
    context = submission.context
    store = context.store
    current = context.current_subscription

    if step is Step.SAVE_FISCAL_DATA:
        return SaveFiscalDataEffect(
            store_id=context.shop_id,
            record=intent.fiscal_data,
        )
    if step is Step.CREATE_CARD:
        return CreateCardEffect(
            fields=intent.payment_source.new_card,
            customer_id=store.payment_customer_id,
            seller_id=store.seller_id,
            store_name=store.store_name,
            email=context.email,
        )
    if step is Step.CREATE_SUBSCRIPTION:
        return CreateSubscriptionEffect(
            seller_id=store.seller_id,
            shop_id=context.shop_id,
            plan_id=intent.plan.id,
            customer_id=store.payment_customer_id,
            card_id=_selected_card_id(state),
            cycle=intent.cycle,
            currency=submission.quote.currency,
            country_code=submission.quote.country_code,
        )
    if step is Step.UPDATE_PAYMENT_METHOD:
        return UpdatePaymentMethodEffect(
            subscription_id=current.subscription_id,
            card_id=_selected_card_id(state),
        )
    return ChangeSubscriptionEffect(
        subscription_id=current.subscription_id,
        plan_id=intent.plan.id if intent.plan.id != current.plan_id else None,
        cycle=intent.cycle,
    )


def _selected_card_id(state: CheckoutState) -> str:
    source = state.submission.intent.payment_source
    if source.new_card is not None:
        if not state.card_id:
            raise ValueError("New card id is not known yet.")
        return state.card_id
    if source.saved_card_id is not None:
        return source.saved_card_id
    current = state.submission.context.current_subscription
    if current is None or current.payment_method_id is None:
        raise ValueError("No payment method available for the subscription.")
    return current.payment_method_id


def _success_url(state: CheckoutState) -> str:
    submission = state.submission
    intent = submission.intent
    context = submission.context
    quote = submission.quote
    source = intent.payment_source

    if source.new_card is not None:
        brand, last4 = source.new_card.brand, source.new_card.last4
    else:
        card_id = source.saved_card_id
        if card_id is None and context.current_subscription is not None:
            card_id = context.current_subscription.payment_method_id
        card = context.find_card(card_id)
        brand = card.brand if card else ""
        last4 = card.last4 if card else ""

    return build_success_url(
        submission.success_url,
        SuccessSummary(
            plan_name=quote.plan_name,
            subtotal=quote.subtotal,
            tax=quote.tax,
            total=quote.total,
            card_brand=brand,
            card_last4=last4,
            is_update=context.current_subscription is not None,
        ),
        return_url=submission.return_url,
    )
