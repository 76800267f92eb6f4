from __future__ import annotations

import json

from cryptography.fernet import Fernet
import httpx
import pytest

from app.domain.entities.card import NewCardFields
from app.domain.exceptions import AdapterError
from app.infrastructure.clients.card_vault_client import CardVaultClient
from app.infrastructure.clients.service_client import ServiceClientSettings
from app.infrastructure.security.card_cipher import FernetCardCipher


CARD = NewCardFields(
    holder_name="Ana Lopez",
    card_number="4242 4242 4242 4242",
    expiration="12/30",
    cvv="987",
    zip_code="06600",
    phone="5512345678",
)


class Recorder:
    def __init__(self, responses: list[httpx.Response]):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def _make_client(handler, cipher: FernetCardCipher | None = None) -> CardVaultClient:
    return CardVaultClient(
        ServiceClientSettings(
            base_url="https://vault.test",
            timeout_seconds=5,
            transport=httpx.MockTransport(handler),
        ),
        access_token="token-1",
        cipher=cipher or FernetCardCipher(key=Fernet.generate_key().decode()),
    )


def _create(client: CardVaultClient, fields: NewCardFields = CARD):
    return client.create_card(
        fields=fields,
        customer_id="cus-1",
        seller_id=77,
        store_name="Tienda Ana",
        email="ana@example.com",
    )


def test_create_card_sends_only_encrypted_card_data():
    cipher = FernetCardCipher(key=Fernet.generate_key().decode())
    recorder = Recorder([httpx.Response(200, json={"success": True, "data": {"id": 55, "seller_id": 77}})])
    client = _make_client(recorder, cipher)

    result = _create(client)

    assert result.success
    assert result.card_id == "55"
    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/t1-store-global-invoice/card"
    assert request.headers["Authorization"] == "Bearer token-1"
    raw = request.content.decode()
    assert "4242424242424242" not in raw
    assert "cvv2" not in raw
    body = json.loads(raw)
    assert body["created_by"] == "ana@example.com"
    document = cipher.decrypt_json(body["encrypted_data"])
    assert document["tarjeta_info"]["pan"] == "4242424242424242"
    assert document["tarjeta_info"]["cvv2"] == "987"
    assert document["tarjeta_info"]["expiracion_mes"] == 12
    assert document["tarjeta_info"]["expiracion_anio"] == 30
    assert document["seller"] == {"id": 77, "nombre": "Tienda Ana"}


def test_create_card_reports_cvv_error_from_error_envelope():
    recorder = Recorder(
        [httpx.Response(400, json={"success": False, "message": "CVV rechazado", "cvv_err": True})]
    )

    result = _create(_make_client(recorder))

    assert not result.success
    assert result.cvv_error
    assert result.error == "CVV rechazado"


def test_secondary_card_is_flagged_as_backup_for_the_calling_seller():
    recorder = Recorder(
        [
            httpx.Response(201, json={"success": True, "data": {"id": "c-9", "seller_id": "not-a-number"}}),
            httpx.Response(200, json={"success": True}),
        ]
    )
    fields = NewCardFields(
        holder_name="Ana Lopez",
        card_number="4242424242424242",
        expiration="12/30",
        cvv="987",
        zip_code="06600",
        secondary=True,
    )

    result = _create(_make_client(recorder), fields)

    assert result.card_id == "c-9"
    backup = recorder.requests[1]
    assert backup.method == "PUT"
    assert backup.url.path == "/t1-store-global-invoice/cards/seller/77/card/c-9/backup"
    assert json.loads(backup.content) == {"backup": True, "updated_by": "ana@example.com"}


def test_backup_flag_failure_does_not_fail_card_creation():
    recorder = Recorder(
        [
            httpx.Response(200, json={"success": True, "data": {"id": "c-9"}}),
            httpx.Response(500, json={"message": "flag error"}),
        ]
    )
    fields = NewCardFields(
        holder_name="Ana Lopez",
        card_number="4242424242424242",
        expiration="12/30",
        cvv="987",
        zip_code="06600",
        secondary=True,
    )

    result = _create(_make_client(recorder), fields)

    assert result.success
    assert result.card_id == "c-9"


def test_list_cards_maps_vault_rows():
    recorder = Recorder(
        [
            httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "id": "c-1",
                            "brand": "VISA",
                            "termination": "************4242",
                            "name": "Ana Lopez",
                            "expiration_month": "04",
                            "expiration_year": "27",
                            "default": True,
                            "backup": False,
                        },
                        {"brand": "visa"},
                    ]
                },
            )
        ]
    )

    cards = _make_client(recorder).list_cards(customer_id="cus-1")

    assert len(cards) == 1
    card = cards[0]
    assert card.brand == "visa"
    assert card.last4 == "4242"
    assert card.expiration_month == 4
    assert card.expiration_year == 2027
    assert card.is_default
    assert recorder.requests[0].url.path == "/t1-store-global-invoice/cards/cus-1"


def test_list_cards_returns_empty_on_404():
    recorder = Recorder([httpx.Response(404, json={"message": "not found"})])

    assert _make_client(recorder).list_cards(customer_id="cus-1") == []


def test_delete_failure_uses_metadata_message():
    recorder = Recorder([httpx.Response(409, json={"metaData": {"message": "Card is in use"}})])

    result = _make_client(recorder).delete_card(card_id="c-1")

    assert not result.success
    assert result.error == "Card is in use"


def test_network_error_becomes_adapter_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AdapterError) as exc_info:
        _make_client(handler).list_cards(customer_id="cus-1")

    assert exc_info.value.service == "card_vault"
    assert exc_info.value.message == "Failed to fetch payment cards."


def test_verify_bin_maps_catalog_rows():
    recorder = Recorder(
        [httpx.Response(200, json={"data": [{"clave": "VISA", "descripcion": "Credito", "nombre": "BBVA"}]})]
    )

    rows = _make_client(recorder).verify_bin(bin_number="42424242")

    assert rows[0].code == "VISA"
    assert rows[0].name == "BBVA"
    assert recorder.requests[0].url.params["bin"] == "42424242"
