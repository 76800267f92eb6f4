from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


_NON_DIGITS = re.compile(r"\D")


def card_expires_at(month: int, year: int) -> datetime:
    """Last instant of the expiration month (a 03/25 card is valid through 2025-03-31T23:59:59.999)."""
    if year < 100:
        year += 2000
    if month == 12:
        first_of_next = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        first_of_next = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return first_of_next - timedelta(milliseconds=1)


def detect_card_brand(card_number: str) -> str:
    digits = _NON_DIGITS.sub("", card_number)
    if digits.startswith("4"):
        return "visa"
    if re.match(r"^(5[1-5]|2[2-7])", digits):
        return "mastercard"
    if re.match(r"^3[47]", digits):
        return "american-express"
    if re.match(r"^6(011|5)", digits):
        return "discover"
    return "unknown"


@dataclass(frozen=True)
class SavedCard:
    id: str
    brand: str
    last4: str
    holder_name: str
    expiration_month: int
    expiration_year: int
    is_default: bool
    is_backup: bool
    card_type: str = "credit_card"
    status: str = "active"

    @property
    def expires_at(self) -> datetime:
        return card_expires_at(self.expiration_month, self.expiration_year)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


@dataclass(frozen=True)
class NewCardFields:
    holder_name: str
    card_number: str = field(repr=False)
    expiration: str
    cvv: str = field(repr=False)
    zip_code: str
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = "MEX"
    phone: str = ""
    card_type: str = "credit_card"
    secondary: bool = False

    @property
    def digits(self) -> str:
        return _NON_DIGITS.sub("", self.card_number)

    @property
    def brand(self) -> str:
        return detect_card_brand(self.card_number)

    @property
    def last4(self) -> str:
        return self.digits[-4:]

    def expiration_parts(self) -> tuple[int, int]:
        """Returns (month, two-digit year) from MM/YY or MMYY."""
        if "/" in self.expiration:
            month, year = self.expiration.split("/", 1)
        else:
            month, year = self.expiration[:2], self.expiration[2:]
        return int(month), int(year)
