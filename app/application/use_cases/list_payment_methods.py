from __future__ import annotations

from datetime import datetime
from typing import Callable

from app.application.dto.checkout import SavedCardView
from app.application.ports.card_vault_port import CardVaultPort
from app.application.ports.identity_port import IdentityPort
from app.application.use_cases.store_common import require_store_access, utcnow
from app.domain.services.card_validation import card_expiry_status


class ListPaymentMethodsUseCase:
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

    def execute(self, *, shop_id: int, email: str) -> list[SavedCardView]:
        store = require_store_access(identity_port=self._identity_port, store_id=shop_id, email=email)
        if not store.payment_customer_id:
            return []
        now = self._clock()
        cards = self._card_vault_port.list_cards(customer_id=store.payment_customer_id)
        # Default card first, then backup, then the rest.
        cards.sort(key=lambda card: (not card.is_default, not card.is_backup))
        return [
            SavedCardView(
                card=card,
                expiry=card_expiry_status(card.expiration_month, card.expiration_year, now=now),
                submit_allowed=True,
            )
            for card in cards
        ]
