from __future__ import annotations

from dataclasses import dataclass

from app.domain.entities.card import NewCardFields


@dataclass(frozen=True)
class CreatePaymentMethodInput:
    shop_id: int
    email: str
    fields: NewCardFields


@dataclass(frozen=True)
class CreatePaymentMethodOutput:
    card_id: str


@dataclass(frozen=True)
class UpdatePaymentMethodFlagsInput:
    shop_id: int
    card_id: str
    email: str
    backup: bool | None = None
