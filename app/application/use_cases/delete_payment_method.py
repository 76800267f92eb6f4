from __future__ import annotations

from app.application.dto.operations import OperationResult
from app.application.ports.card_vault_port import CardVaultPort
from app.application.ports.identity_port import IdentityPort
from app.application.ports.subscription_port import SubscriptionPort
from app.application.use_cases.store_common import require_store_access
from app.domain.exceptions import AdapterError, CheckoutValidationError


class DeletePaymentMethodUseCase:
    def __init__(
        self,
        *,
        card_vault_port: CardVaultPort,
        identity_port: IdentityPort,
        subscription_port: SubscriptionPort,
    ):
        self._card_vault_port = card_vault_port
        self._identity_port = identity_port
        self._subscription_port = subscription_port

    def execute(self, *, shop_id: int, card_id: str, email: str) -> OperationResult:
        require_store_access(identity_port=self._identity_port, store_id=shop_id, email=email)
        current = self._subscription_port.get_current(shop_id=shop_id)
        if current is not None and current.payment_method_id == card_id:
            raise CheckoutValidationError(
                "The card is the payment method of the current subscription.",
                errors={"card_id": "Change the subscription payment method before deleting this card."},
            )
        result = self._card_vault_port.delete_card(card_id=card_id)
        if not result.success:
            raise AdapterError(result.error or "Could not delete the card.", service="card_vault")
        return result
