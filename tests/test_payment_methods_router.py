from __future__ import annotations

from datetime import datetime, timezone

from fastapi.testclient import TestClient

from app.api.deps import (
    get_create_payment_method_use_case,
    get_delete_payment_method_use_case,
    get_get_fiscal_data_use_case,
    get_list_payment_methods_use_case,
    get_request_identity,
    get_save_fiscal_data_use_case,
    get_set_backup_payment_method_use_case,
    get_verify_card_bin_use_case,
)
from app.application.dto.auth import RequestIdentity
from app.application.dto.checkout import SavedCardView
from app.application.dto.operations import BinInfo, OperationResult
from app.application.dto.payment_methods import CreatePaymentMethodOutput
from app.application.use_cases.save_fiscal_data import SaveFiscalDataUseCase
from app.domain.entities.card import SavedCard
from app.domain.entities.store import StoreProfile, UserAccess
from app.domain.exceptions import AccessDeniedError, CheckoutValidationError
from app.domain.services.card_validation import card_expiry_status
from app.main import app


IDENTITY = RequestIdentity(access_token="token-1", subject="user-1", email="ana@example.com")


class FakeListUseCase:
    def execute(self, *, shop_id: int, email: str):
        if shop_id == 99:
            raise AccessDeniedError("You do not have access to this store.")
        card = SavedCard(
            id="card-A",
            brand="visa",
            last4="4242",
            holder_name="Ana Lopez",
            expiration_month=12,
            expiration_year=2030,
            is_default=True,
            is_backup=False,
        )
        return [
            SavedCardView(
                card=card,
                expiry=card_expiry_status(12, 2030, now=datetime(2025, 1, 15, tzinfo=timezone.utc)),
                submit_allowed=True,
            )
        ]


class FakeCreateUseCase:
    def __init__(self):
        self.commands = []

    def execute(self, command):
        self.commands.append(command)
        if command.fields.cvv == "000":
            raise CheckoutValidationError("CVV rejected", errors={"cvv": "CVV rejected"})
        return CreatePaymentMethodOutput(card_id="card-new")


class FakeFlagUseCase:
    def __init__(self):
        self.commands = []

    def execute(self, command):
        self.commands.append(command)
        return OperationResult.ok()


class FakeDeleteUseCase:
    def execute(self, *, shop_id: int, card_id: str, email: str):
        if card_id == "card-A":
            raise CheckoutValidationError(
                "The card is the payment method of the current subscription.",
                errors={"card_id": "In use."},
            )
        return OperationResult.ok("Deleted")


class FakeBinUseCase:
    def execute(self, *, bin_number: str):
        return [BinInfo(code="VISA", description="Credito", name="BBVA")]


class FakeFiscalDataPort:
    def __init__(self):
        self.saved = []

    def get(self, *, seller_id: int):
        return None

    def save(self, *, store_id: int, record):
        self.saved.append((store_id, record))
        return OperationResult.ok()


class FakeIdentityPort:
    def get_store(self, *, store_id: int) -> StoreProfile:
        return StoreProfile(store_id=store_id, seller_id=77, store_name="Tienda Ana", payment_customer_id=None)

    def get_user_access(self, *, store_id: int, email: str) -> UserAccess:
        return UserAccess(has_access=True)


CARD_BODY = {
    "holder_name": "Ana Lopez",
    "card_number": "4242424242424242",
    "expiration": "12/30",
    "cvv": "123",
    "zip_code": "06600",
    "secondary": True,
}


def _client() -> TestClient:
    app.dependency_overrides[get_request_identity] = lambda: IDENTITY
    return TestClient(app)


def test_list_payment_methods():
    client = _client()
    app.dependency_overrides[get_list_payment_methods_use_case] = lambda: FakeListUseCase()

    response = client.get("/v1/payment-methods/10")

    assert response.status_code == 200
    payload = response.json()
    assert payload[0]["id"] == "card-A"
    assert payload[0]["expiry"]["expired"] is False
    assert payload[0]["expires_at"].startswith("2030-12-31T23:59:59.999")

    app.dependency_overrides.clear()


def test_list_payment_methods_without_access_is_forbidden():
    client = _client()
    app.dependency_overrides[get_list_payment_methods_use_case] = lambda: FakeListUseCase()

    response = client.get("/v1/payment-methods/99")

    assert response.status_code == 403

    app.dependency_overrides.clear()


def test_create_payment_method_returns_201_with_card_id():
    use_case = FakeCreateUseCase()
    client = _client()
    app.dependency_overrides[get_create_payment_method_use_case] = lambda: use_case

    response = client.post("/v1/payment-methods/10", json=CARD_BODY)

    assert response.status_code == 201
    assert response.json() == {"card_id": "card-new"}
    command = use_case.commands[0]
    assert command.shop_id == 10
    assert command.email == "ana@example.com"
    assert command.fields.secondary is True

    app.dependency_overrides.clear()


def test_create_payment_method_with_rejected_cvv():
    client = _client()
    app.dependency_overrides[get_create_payment_method_use_case] = lambda: FakeCreateUseCase()

    response = client.post("/v1/payment-methods/10", json={**CARD_BODY, "cvv": "000"})

    assert response.status_code == 422
    assert response.json()["detail"]["errors"] == {"cvv": "CVV rejected"}

    app.dependency_overrides.clear()


def test_set_backup_defaults_to_true():
    use_case = FakeFlagUseCase()
    client = _client()
    app.dependency_overrides[get_set_backup_payment_method_use_case] = lambda: use_case

    response = client.put("/v1/payment-methods/10/card-B/backup", json={})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert use_case.commands[0].backup is True
    assert use_case.commands[0].card_id == "card-B"

    app.dependency_overrides.clear()


def test_delete_card_in_use_is_rejected():
    client = _client()
    app.dependency_overrides[get_delete_payment_method_use_case] = lambda: FakeDeleteUseCase()

    rejected = client.delete("/v1/payment-methods/10/card-A")
    deleted = client.delete("/v1/payment-methods/10/card-B")

    assert rejected.status_code == 422
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "message": "Deleted"}

    app.dependency_overrides.clear()


def test_bin_route_is_not_shadowed_by_shop_listing():
    client = _client()
    app.dependency_overrides[get_verify_card_bin_use_case] = lambda: FakeBinUseCase()

    response = client.get("/v1/payment-methods/bin/42424242")

    assert response.status_code == 200
    assert response.json() == [{"code": "VISA", "description": "Credito", "name": "BBVA"}]

    app.dependency_overrides.clear()


def test_fiscal_data_round_trip_through_use_case():
    fiscal_data_port = FakeFiscalDataPort()
    client = _client()
    app.dependency_overrides[get_save_fiscal_data_use_case] = lambda: SaveFiscalDataUseCase(
        fiscal_data_port=fiscal_data_port,
        identity_port=FakeIdentityPort(),
    )

    response = client.patch(
        "/v1/fiscal-data/10",
        json={"rfc": "xaxx010101000", "business_name": "Ana Lopez", "postal_code": "06600"},
    )

    assert response.status_code == 200
    assert response.json()["taxpayer_type"] == "fisica"
    assert response.json()["rfc"] == "XAXX010101000"
    store_id, record = fiscal_data_port.saved[0]
    assert store_id == 10
    assert record.rfc == "XAXX010101000"

    app.dependency_overrides.clear()


def test_missing_fiscal_data_returns_empty_envelope():
    class FakeGetFiscalDataUseCase:
        def execute(self, *, shop_id: int, email: str):
            return None

    client = _client()
    app.dependency_overrides[get_get_fiscal_data_use_case] = lambda: FakeGetFiscalDataUseCase()

    response = client.get("/v1/fiscal-data/10")

    assert response.status_code == 200
    assert response.json() == {"exists": False, "data": None}

    app.dependency_overrides.clear()
