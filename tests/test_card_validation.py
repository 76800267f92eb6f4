from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.domain.entities.card import NewCardFields, SavedCard, card_expires_at, detect_card_brand
from app.domain.exceptions import CheckoutValidationError
from app.domain.services.card_validation import (
    card_expiry_status,
    is_valid_card_number,
    is_valid_cvv,
    is_valid_expiration,
    is_valid_full_name,
    is_valid_phone,
    is_valid_zip_code,
    parse_expiration,
    passes_luhn,
    validate_new_card,
)


NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def _fields(**overrides) -> NewCardFields:
    values = {
        "holder_name": "Ana Lopez",
        "card_number": "4242 4242 4242 4242",
        "expiration": "12/30",
        "cvv": "123",
        "zip_code": "06600",
        "phone": "5512345678",
    }
    values.update(overrides)
    return NewCardFields(**values)


def test_card_expires_at_last_instant_of_month():
    assert card_expires_at(3, 25) == datetime(2025, 3, 31, 23, 59, 59, 999000, tzinfo=timezone.utc)
    assert card_expires_at(12, 2025) == datetime(2025, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc)
    assert card_expires_at(2, 24) == datetime(2024, 2, 29, 23, 59, 59, 999000, tzinfo=timezone.utc)


def test_expiration_is_valid_until_end_of_month():
    assert is_valid_expiration("03/25", now=datetime(2025, 3, 31, 23, 0, tzinfo=timezone.utc))
    assert not is_valid_expiration("03/25", now=datetime(2025, 4, 1, tzinfo=timezone.utc))


def test_expiration_accepts_both_formats_and_rejects_bad_month():
    assert parse_expiration("0330") == (3, 2030)
    assert parse_expiration("03/30") == (3, 2030)
    assert parse_expiration("13/30") is None
    assert parse_expiration("3/3") is None


def test_saved_card_is_expired_after_its_month():
    card = SavedCard(
        id="c1",
        brand="visa",
        last4="4242",
        holder_name="Ana Lopez",
        expiration_month=12,
        expiration_year=2024,
        is_default=True,
        is_backup=False,
    )

    assert card.is_expired(NOW)
    assert not card.is_expired(datetime(2024, 12, 31, tzinfo=timezone.utc))


def test_luhn_check():
    assert passes_luhn("4242424242424242")
    assert not passes_luhn("4242424242424241")
    assert not passes_luhn("4242")
    assert is_valid_card_number("4242-4242-4242-4242")


def test_brand_detection_by_prefix():
    assert detect_card_brand("4242424242424242") == "visa"
    assert detect_card_brand("5555555555554444") == "mastercard"
    assert detect_card_brand("2223003122003222") == "mastercard"
    assert detect_card_brand("378282246310005") == "american-express"
    assert detect_card_brand("6011111111111117") == "discover"
    assert detect_card_brand("9999999999999999") == "unknown"


def test_cvv_length_depends_on_brand():
    assert is_valid_cvv("1234", "american-express")
    assert not is_valid_cvv("123", "american-express")
    assert is_valid_cvv("123", "visa")
    assert is_valid_cvv("1234", "visa")
    assert not is_valid_cvv("12", "visa")


def test_simple_field_rules():
    assert is_valid_zip_code("06600")
    assert not is_valid_zip_code("0660")
    assert is_valid_phone("55 1234 5678")
    assert not is_valid_phone("551234")
    assert is_valid_full_name("Ana Lopez")
    assert not is_valid_full_name("Ana")


def test_card_expiry_status_flags_almost_expired_cards():
    status = card_expiry_status(4, 2025, now=datetime(2025, 4, 10, tzinfo=timezone.utc))

    assert not status.expired
    assert status.days_left == 20
    assert status.almost_expired


def test_card_expiry_status_for_expired_card():
    status = card_expiry_status(12, 2024, now=NOW)

    assert status.expired
    assert status.days_left == 0
    assert not status.almost_expired


def test_validate_new_card_accepts_valid_fields():
    validate_new_card(_fields(), now=NOW)


def test_validate_new_card_collects_every_field_error():
    fields = _fields(
        holder_name="Ana",
        card_number="4242424242424241",
        expiration="01/20",
        cvv="12",
        zip_code="123",
        phone="55",
    )

    with pytest.raises(CheckoutValidationError) as exc_info:
        validate_new_card(fields, now=NOW)

    assert set(exc_info.value.errors) == {
        "card_number",
        "expiration",
        "cvv",
        "holder_name",
        "zip_code",
        "phone",
    }


def test_new_card_fields_hide_sensitive_values_from_repr():
    text = repr(_fields(cvv="987"))

    assert "4242 4242 4242 4242" not in text
    assert "987" not in text
