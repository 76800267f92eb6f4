from __future__ import annotations

from typing import Protocol

from app.application.dto.operations import BinInfo, CreateCardResult, OperationResult
from app.domain.entities.card import NewCardFields, SavedCard


class CardVaultPort(Protocol):
    def list_cards(self, *, customer_id: str) -> list[SavedCard]:
        ...

    def create_card(
        self,
        *,
        fields: NewCardFields,
        customer_id: str | None,
        seller_id: int,
        store_name: str,
        email: str,
    ) -> CreateCardResult:
        ...

    def set_default(self, *, card_id: str, seller_id: int, email: str) -> OperationResult:
        ...

    def set_backup(self, *, card_id: str, seller_id: int, email: str, backup: bool) -> OperationResult:
        ...

    def delete_card(self, *, card_id: str) -> OperationResult:
        ...

    def verify_bin(self, *, bin_number: str) -> list[BinInfo]:
        ...
