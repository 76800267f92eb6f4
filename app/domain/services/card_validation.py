from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

from app.domain.entities.card import NewCardFields, card_expires_at, detect_card_brand
from app.domain.exceptions import CheckoutValidationError


ALMOST_EXPIRED_DAYS = 30


@dataclass(frozen=True)
class CardExpiryStatus:
    expired: bool
    days_left: int
    almost_expired: bool


def clean_digits(value: str) -> str:
    return re.sub(r"\D", "", value)


def passes_luhn(card_number: str) -> bool:
    digits = clean_digits(card_number)
    if len(digits) < 13 or len(digits) > 19:
        return False
    total = 0
    for index, char in enumerate(reversed(digits)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_valid_card_number(card_number: str) -> bool:
    return re.fullmatch(r"\d{13,19}", clean_digits(card_number)) is not None and passes_luhn(card_number)


def parse_expiration(value: str) -> tuple[int, int] | None:
    digits = clean_digits(value)
    if len(digits) != 4:
        return None
    month = int(digits[:2])
    year = 2000 + int(digits[2:])
    if month < 1 or month > 12:
        return None
    return month, year


def is_valid_expiration(value: str, *, now: datetime) -> bool:
    parsed = parse_expiration(value)
    if parsed is None:
        return False
    month, year = parsed
    return card_expires_at(month, year) > now


def is_valid_cvv(cvv: str, brand: str | None = None) -> bool:
    brand_l = (brand or "").lower()
    if "amex" in brand_l or "american" in brand_l:
        return re.fullmatch(r"\d{4}", cvv) is not None
    return re.fullmatch(r"\d{3,4}", cvv) is not None


def is_valid_zip_code(zip_code: str) -> bool:
    return re.fullmatch(r"\d{5}", zip_code) is not None


def is_valid_phone(phone: str) -> bool:
    return re.fullmatch(r"\d{10}", clean_digits(phone)) is not None


def is_valid_full_name(name: str) -> bool:
    return len(name.split()) >= 2


def card_expiry_status(month: int, year: int, *, now: datetime) -> CardExpiryStatus:
    expires_at = card_expires_at(month, year)
    expired = expires_at < now
    days_left = max(0, (expires_at - now).days)
    return CardExpiryStatus(
        expired=expired,
        days_left=days_left,
        almost_expired=0 < days_left <= ALMOST_EXPIRED_DAYS,
    )


def validate_new_card(fields: NewCardFields, *, now: datetime) -> None:
    errors: dict[str, str] = {}

    if not is_valid_card_number(fields.card_number):
        errors["card_number"] = "Invalid card number."
    if not is_valid_expiration(fields.expiration, now=now):
        errors["expiration"] = "Invalid or expired expiration date."
    if not is_valid_cvv(fields.cvv, detect_card_brand(fields.card_number)):
        errors["cvv"] = "Invalid CVV."
    if not is_valid_full_name(fields.holder_name):
        errors["holder_name"] = "First and last name are required."
    if not is_valid_zip_code(fields.zip_code):
        errors["zip_code"] = "Invalid postal code."
    if fields.phone and not is_valid_phone(fields.phone):
        errors["phone"] = "Phone number must have 10 digits."

    if errors:
        raise CheckoutValidationError("Card data is invalid.", errors=errors)
