from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class NewCardRequest(BaseModel):
    holder_name: str = Field(..., min_length=1)
    card_number: str = Field(..., min_length=12, max_length=23, repr=False)
    expiration: str = Field(..., description="MM/YY or MMYY.")
    cvv: str = Field(..., min_length=3, max_length=4, repr=False)
    zip_code: str
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = "MEX"
    phone: str = ""
    card_type: str = "credit_card"
    secondary: bool = Field(False, description="When true the card is also flagged as backup.")


class CardExpiryResponse(BaseModel):
    expired: bool
    days_left: int
    almost_expired: bool


class SavedCardResponse(BaseModel):
    id: str
    brand: str
    last4: str
    holder_name: str
    expiration_month: int
    expiration_year: int
    expires_at: datetime
    is_default: bool
    is_backup: bool
    card_type: str
    status: str
    expiry: CardExpiryResponse
    submit_allowed: bool


class CreatePaymentMethodResponse(BaseModel):
    card_id: str


class SetBackupRequest(BaseModel):
    backup: bool = True


class OperationResponse(BaseModel):
    success: bool
    message: str | None = None


class BinInfoResponse(BaseModel):
    code: str
    description: str
    name: str
