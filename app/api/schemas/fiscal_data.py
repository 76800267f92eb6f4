from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class FiscalDataRequest(BaseModel):
    rfc: str = Field(..., min_length=12, max_length=13)
    business_name: str = Field(..., min_length=1)
    postal_code: str = Field(..., description="5-digit postal code.")
    taxpayer_type: Literal["fisica", "moral"] | None = None
    tax_regime: str | None = Field(None, description="SAT regime code, e.g. 601.")


class FiscalDataResponse(BaseModel):
    taxpayer_type: str
    rfc: str
    business_name: str
    postal_code: str
    tax_regime: str | None = None


class FiscalDataEnvelope(BaseModel):
    exists: bool
    data: FiscalDataResponse | None = None
