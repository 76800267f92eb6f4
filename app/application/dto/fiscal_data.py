from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SaveFiscalDataInput:
    shop_id: int
    rfc: str
    business_name: str
    postal_code: str
    taxpayer_type: str | None = None
    tax_regime: str | None = None
