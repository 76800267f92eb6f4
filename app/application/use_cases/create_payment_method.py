from __future__ import annotations

from datetime import datetime
from typing import Callable

from app.application.dto.payment_methods import CreatePaymentMethodInput, CreatePaymentMethodOutput
from app.application.ports.card_vault_port import CardVaultPort
from app.application.ports.identity_port import IdentityPort
from app.application.use_cases.store_common import require_store_access, utcnow
from app.domain.exceptions import AdapterError, CheckoutValidationError
from app.domain.services.card_validation import validate_new_card


class CreatePaymentMethodUseCase:
    def __init__(
        self,
        *,
        card_vault_port: CardVaultPort,
        identity_port: IdentityPort,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._card_vault_port = card_vault_port
        self._identity_port = identity_port
        self._clock = clock

    def execute(self, command: CreatePaymentMethodInput) -> CreatePaymentMethodOutput:
        validate_new_card(command.fields, now=self._clock())
        store = require_store_access(
            identity_port=self._identity_port,
            store_id=command.shop_id,
            email=command.email,
        )
        result = self._card_vault_port.create_card(
            fields=command.fields,
            customer_id=store.payment_customer_id,
            seller_id=store.seller_id,
            store_name=store.store_name,
            email=command.email,
        )
        if result.cvv_error:
            raise CheckoutValidationError(
                result.error or "Invalid CVV.",
                errors={"cvv": result.error or "Invalid CVV."},
            )
        if not result.success or not result.card_id:
            raise AdapterError(result.error or "Could not save the card.", service="card_vault")
        return CreatePaymentMethodOutput(card_id=result.card_id)
