from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from urllib.parse import urlencode, urlsplit, urlunsplit


@dataclass(frozen=True)
class SuccessSummary:
    plan_name: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    card_brand: str
    card_last4: str
    is_update: bool


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def build_success_url(base_url: str, summary: SuccessSummary, *, return_url: str | None = None) -> str:
    params = {
        "planName": summary.plan_name,
        "subtotal": _money(summary.subtotal),
        "tax": _money(summary.tax),
        "total": _money(summary.total),
        "cardBrand": summary.card_brand,
        "cardLast4": summary.card_last4,
        "isUpdate": "true" if summary.is_update else "false",
    }
    if return_url:
        params["redirectUrl"] = return_url

    parts = urlsplit(base_url)
    query = urlencode(params)
    if parts.query:
        query = f"{parts.query}&{query}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
