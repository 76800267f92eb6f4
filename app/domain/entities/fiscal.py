from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


TaxpayerType = Literal["fisica", "moral"]


@dataclass(frozen=True)
class FiscalRecord:
    taxpayer_type: str
    rfc: str
    business_name: str
    postal_code: str
    tax_regime: str | None = None
