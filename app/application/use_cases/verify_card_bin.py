from __future__ import annotations

from app.application.dto.operations import BinInfo
from app.application.ports.card_vault_port import CardVaultPort
from app.domain.exceptions import CheckoutValidationError
from app.domain.services.card_validation import clean_digits


class VerifyCardBinUseCase:
    def __init__(self, *, card_vault_port: CardVaultPort):
        self._card_vault_port = card_vault_port

    def execute(self, *, bin_number: str) -> list[BinInfo]:
        digits = clean_digits(bin_number)
        if len(digits) < 6:
            raise CheckoutValidationError("BIN must have at least 6 digits.", errors={"bin": "Too short."})
        return self._card_vault_port.verify_bin(bin_number=digits[:8])
