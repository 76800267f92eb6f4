from __future__ import annotations

import json

import httpx

from app.domain.entities.fiscal import FiscalRecord
from app.infrastructure.clients.fiscal_data_client import FiscalDataClient
from app.infrastructure.clients.service_client import ServiceClientSettings


def _make_client(handler) -> FiscalDataClient:
    return FiscalDataClient(
        ServiceClientSettings(
            base_url="https://wallet.test",
            timeout_seconds=5,
            transport=httpx.MockTransport(handler),
        ),
        access_token="token-1",
        identity_base_url="https://identity.test/v1",
    )


def test_get_reads_wallet_fiscal_data():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "wallet.test"
        assert request.url.path == "/wallet/invoice/sellers/77/fiscal-data"
        assert request.headers["seller_id"] == "77"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "tax_information": {
                        "rfc": "abc010101ab1",
                        "business_name": "Comercial del Centro",
                        "regimen": "601",
                        "address": {"zip": "06600"},
                    }
                },
            },
        )

    record = _make_client(handler).get(seller_id=77)

    assert record == FiscalRecord(
        taxpayer_type="moral",
        rfc="ABC010101AB1",
        business_name="Comercial del Centro",
        postal_code="06600",
        tax_regime="601",
    )


def test_get_returns_none_when_missing():
    assert _make_client(lambda request: httpx.Response(404)).get(seller_id=77) is None
    assert _make_client(lambda request: httpx.Response(200, json={"success": False})).get(seller_id=77) is None
    assert _make_client(lambda request: httpx.Response(200, json={"data": {}})).get(seller_id=77) is None


def test_save_patches_identity_tax_information():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True})

    result = _make_client(handler).save(
        store_id=10,
        record=FiscalRecord(
            taxpayer_type="fisica",
            rfc="XAXX010101000",
            business_name="Ana Lopez",
            postal_code="06600",
        ),
    )

    assert result.success
    request = seen[0]
    assert request.method == "PATCH"
    assert str(request.url) == "https://identity.test/v1/tax_information/10"
    assert json.loads(request.content) == {
        "taxpayer_type": "fisica",
        "rfc": "XAXX010101000",
        "business_name": "Ana Lopez",
        "address": {"zip": "06600"},
    }


def test_save_failure_carries_service_message():
    client = _make_client(lambda request: httpx.Response(422, json={"detail": "RFC already registered"}))

    result = client.save(
        store_id=10,
        record=FiscalRecord(
            taxpayer_type="fisica",
            rfc="XAXX010101000",
            business_name="Ana Lopez",
            postal_code="06600",
        ),
    )

    assert not result.success
    assert result.error == "RFC already registered"
