from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
import logging

from app.application.dto.operations import OperationResult
from app.application.ports.plan_catalog_port import PlanCatalogPort
from app.application.ports.subscription_port import SubscriptionPort
from app.domain.entities.plan import CountryPricing, Plan
from app.domain.entities.subscription import ChangePreview, CurrentSubscription
from app.domain.exceptions import AdapterError
from app.infrastructure.clients.service_client import ServiceClient, extract_error_message


logger = logging.getLogger(__name__)

SERVICE_TYPE = "store"
PAYMENT_METHOD = "tarjeta"
SOURCE = "web"


def _decimal(value: object, default: str = "0") -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise AdapterError(f"Invalid amount in plan catalog: {value!r}", service="subscription") from exc


def _optional_decimal(value: object) -> Decimal | None:
    if value is None or value == "":
        return None
    return _decimal(value)


def _datetime(value: object) -> datetime | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("subscription_client: invalid_datetime value=%s", value)
        return None


def map_plan(row: dict) -> Plan:
    pricing = tuple(
        CountryPricing(
            country_code=str(entry.get("country_code") or "").upper(),
            currency=str(entry.get("currency") or "MXN"),
            price_monthly=_decimal(entry.get("price_monthly")),
            price_annual=_decimal(entry.get("price_annual")),
            tax_rate=_decimal(entry.get("tax_rate")),
            discount_annual_percent=_decimal(entry.get("discount_annual_percent")),
            is_active=bool(entry.get("is_active", True)),
            is_public=bool(entry.get("is_public", True)),
        )
        for entry in row.get("country_availability") or []
        if isinstance(entry, dict)
    )
    return Plan(
        id=str(row.get("plan_id") or row.get("id")),
        name=str(row.get("name") or ""),
        display_name=row.get("display_name"),
        country_pricing=pricing,
        billing_cycles=tuple(str(cycle) for cycle in row.get("billing_cycles") or ()),
        trial_days=int(row.get("trial_days") or 0),
        is_active=bool(row.get("is_active", True)),
    )


def map_current_subscription(row: dict) -> CurrentSubscription:
    return CurrentSubscription(
        subscription_id=str(row.get("cronos_subscription_id") or row.get("subscription_id") or row.get("id")),
        plan_id=str(row.get("plan_id")),
        plan_name=row.get("plan_name"),
        billing_cycle=str(row.get("billing_cycle") or "monthly"),
        status=str(row.get("status") or ""),
        payment_method_id=str(row["payment_id"]) if row.get("payment_id") else None,
        current_period_end=_datetime(row.get("current_period_end")),
        trial_ends_at=_datetime(row.get("trial_ends_at")),
    )


def map_change_preview(row: dict) -> ChangePreview:
    prorated = None
    for price in row.get("prices") or []:
        if isinstance(price, dict) and price.get("prorated_amount") is not None:
            prorated = (prorated or Decimal("0")) + _decimal(price["prorated_amount"])
    return ChangePreview(
        prorated_amount=prorated,
        total_amount=_optional_decimal(row.get("total_amount")),
        execution_date=_datetime(row.get("execution_date")),
    )


class SubscriptionClient(ServiceClient, SubscriptionPort, PlanCatalogPort):
    service_name = "subscription"

    def get_plan(self, *, plan_id: str) -> Plan | None:
        payload = self._request(
            "GET",
            f"/suscriptions/plans/{plan_id}",
            fallback_message="Failed to fetch plan.",
            not_found_ok=True,
        )
        if payload is None:
            return None
        plan = (payload.get("data") or {}).get("plan")
        if not isinstance(plan, dict):
            return None
        return map_plan(plan)

    def get_current(self, *, shop_id: int) -> CurrentSubscription | None:
        payload = self._request(
            "GET",
            f"/suscriptions/shops/{shop_id}/current",
            params={"service_type": SERVICE_TYPE},
            fallback_message="Failed to fetch current subscription.",
            not_found_ok=True,
        )
        if payload is None:
            return None
        subscription = (payload.get("data") or {}).get("subscription")
        if not isinstance(subscription, dict):
            return None
        return map_current_subscription(subscription)

    def create(
        self,
        *,
        seller_id: int,
        shop_id: int,
        plan_id: str,
        customer_id: str | None,
        card_id: str,
        cycle: str,
        currency: str,
        country_code: str,
    ) -> OperationResult:
        return self._mutate(
            "POST",
            "/suscriptions/subscribe-simple",
            json={
                "user_id": None,
                "seller_id": seller_id,
                "shop_id": shop_id,
                "service_type": SERVICE_TYPE,
                "plan_id": plan_id,
                "customer_id": customer_id,
                "payment_id": card_id,
                "payment_method": PAYMENT_METHOD,
                "billing_cycle": cycle,
                "country_code": country_code,
                "currency": currency,
                "metadata": {"source": SOURCE},
            },
            fallback_message="Failed to create subscription.",
        )

    def change(self, *, subscription_id: str, plan_id: str | None, cycle: str) -> OperationResult:
        body: dict = {"billing_cycle": cycle}
        if plan_id is not None:
            body["plan_id"] = plan_id
        return self._mutate(
            "POST",
            f"/suscriptions/{subscription_id}/change",
            json=body,
            fallback_message="Failed to change subscription.",
        )

    def update_payment_method(self, *, subscription_id: str, card_id: str) -> OperationResult:
        return self._mutate(
            "PUT",
            f"/suscriptions/{subscription_id}/payment-method",
            json={"payment_id": card_id, "payment_method": PAYMENT_METHOD},
            fallback_message="Failed to update payment method.",
        )

    def preview_change(self, *, subscription_id: str, plan_id: str, cycle: str) -> ChangePreview | None:
        payload = self._request(
            "POST",
            f"/suscriptions/{subscription_id}/change/preview",
            json={"plan_id": plan_id, "billing_cycle": cycle},
            fallback_message="Failed to preview subscription change.",
            not_found_ok=True,
        )
        if payload is None:
            return None
        preview = ((payload.get("data") or {}).get("preview") or {}).get("preview")
        if not isinstance(preview, dict):
            return None
        return map_change_preview(preview)

    def _mutate(self, method: str, path: str, *, json: dict, fallback_message: str) -> OperationResult:
        try:
            payload = self._request(method, path, json=json, fallback_message=fallback_message)
        except AdapterError as exc:
            return OperationResult.failed(exc.message)
        # Some endpoints answer 200 with success=false and the reason in the envelope.
        if payload.get("success") is False:
            return OperationResult.failed(extract_error_message(payload) or fallback_message)
        return OperationResult.ok(extract_error_message(payload))

