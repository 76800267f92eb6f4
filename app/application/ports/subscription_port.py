from __future__ import annotations

from typing import Protocol

from app.application.dto.operations import OperationResult
from app.domain.entities.subscription import ChangePreview, CurrentSubscription


class SubscriptionPort(Protocol):
    def get_current(self, *, shop_id: int) -> CurrentSubscription | None:
        ...

    def create(
        self,
        *,
        seller_id: int,
        shop_id: int,
        plan_id: str,
        customer_id: str | None,
        card_id: str,
        cycle: str,
        currency: str,
        country_code: str,
    ) -> OperationResult:
        ...

    def change(self, *, subscription_id: str, plan_id: str | None, cycle: str) -> OperationResult:
        ...

    def update_payment_method(self, *, subscription_id: str, card_id: str) -> OperationResult:
        ...

    def preview_change(self, *, subscription_id: str, plan_id: str, cycle: str) -> ChangePreview | None:
        ...
