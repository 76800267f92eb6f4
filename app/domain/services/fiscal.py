from __future__ import annotations

import re

from app.domain.entities.fiscal import FiscalRecord
from app.domain.exceptions import CheckoutValidationError


RFC_PATTERN = re.compile(r"^[A-ZÑ&]{3,4}\d{6}[A-Z0-9]{3}$")

POSTAL_CODE_PATTERN = re.compile(r"^\d{5}$")

# Mexican RFC: 13 characters for individuals, 12 for organizations.
RFC_LENGTH_FISICA = 13
RFC_LENGTH_MORAL = 12


def normalize_rfc(rfc: str) -> str:
    return rfc.strip().upper()


def taxpayer_type_for_rfc(rfc: str) -> str | None:
    length = len(normalize_rfc(rfc))
    if length == RFC_LENGTH_FISICA:
        return "fisica"
    if length == RFC_LENGTH_MORAL:
        return "moral"
    return None


def persona_for_rfc(rfc: str) -> str | None:
    """SAT catalog persona key (FISICA/MORAL) used for regime and CFDI-use lookups."""
    taxpayer_type = taxpayer_type_for_rfc(rfc)
    if taxpayer_type is None:
        return None
    return taxpayer_type.upper()


def build_fiscal_record(
    *,
    rfc: str,
    business_name: str,
    postal_code: str,
    taxpayer_type: str | None = None,
    tax_regime: str | None = None,
) -> FiscalRecord:
    errors: dict[str, str] = {}
    rfc_n = normalize_rfc(rfc)
    expected_type = taxpayer_type_for_rfc(rfc_n)

    if not RFC_PATTERN.match(rfc_n) or expected_type is None:
        errors["rfc"] = "RFC must have 12 (moral) or 13 (fisica) characters in SAT format."
    elif taxpayer_type is not None and taxpayer_type != expected_type:
        errors["taxpayer_type"] = f"RFC length corresponds to taxpayer type '{expected_type}'."
    if not business_name.strip():
        errors["business_name"] = "Business name is required."
    if not POSTAL_CODE_PATTERN.match(postal_code.strip()):
        errors["postal_code"] = "Postal code must have 5 digits."
    regime = tax_regime.strip() if tax_regime else None
    if regime and (not regime.isdigit() or not 3 <= len(regime) <= 4):
        errors["tax_regime"] = "Tax regime must be a 3-4 digit SAT code."

    if errors:
        raise CheckoutValidationError("Fiscal data is invalid.", errors=errors)

    return FiscalRecord(
        taxpayer_type=taxpayer_type or expected_type,
        rfc=rfc_n,
        business_name=business_name.strip(),
        postal_code=postal_code.strip(),
        tax_regime=regime or None,
    )
