from __future__ import annotations

from app.application.dto.operations import OperationResult
from app.application.ports.fiscal_data_port import FiscalDataPort
from app.domain.entities.fiscal import FiscalRecord
from app.domain.exceptions import AdapterError
from app.domain.services.fiscal import normalize_rfc, taxpayer_type_for_rfc
from app.infrastructure.clients.service_client import ServiceClient, ServiceClientSettings


def map_fiscal_record(data: dict) -> FiscalRecord | None:
    tax_information = data.get("tax_information")
    if not isinstance(tax_information, dict):
        return None
    rfc = normalize_rfc(str(tax_information.get("rfc") or ""))
    if not rfc:
        return None
    address = tax_information.get("address") or {}
    return FiscalRecord(
        taxpayer_type=str(tax_information.get("taxpayer_type") or taxpayer_type_for_rfc(rfc) or ""),
        rfc=rfc,
        business_name=str(tax_information.get("business_name") or data.get("business_name") or ""),
        postal_code=str(address.get("zip") or ""),
        tax_regime=tax_information.get("regimen") or None,
    )


class FiscalDataClient(ServiceClient, FiscalDataPort):
    """Reads fiscal data from the wallet and writes it through identity."""

    service_name = "fiscal_data"

    def __init__(
        self,
        settings: ServiceClientSettings,
        *,
        access_token: str,
        identity_base_url: str,
    ):
        super().__init__(settings, access_token=access_token)
        if not identity_base_url:
            raise AdapterError("identity base URL is not configured.", service=self.service_name)
        self._identity_base_url = identity_base_url

    def get(self, *, seller_id: int) -> FiscalRecord | None:
        payload = self._request(
            "GET",
            f"/wallet/invoice/sellers/{seller_id}/fiscal-data",
            headers={"seller_id": str(seller_id)},
            fallback_message="Failed to fetch fiscal data.",
            not_found_ok=True,
        )
        if payload is None or not payload.get("success", True):
            return None
        data = payload.get("data")
        if not isinstance(data, dict):
            return None
        return map_fiscal_record(data)

    def save(self, *, store_id: int, record: FiscalRecord) -> OperationResult:
        try:
            self._request(
                "PATCH",
                f"tax_information/{store_id}",
                base_url=self._identity_base_url,
                json={
                    "taxpayer_type": record.taxpayer_type,
                    "rfc": record.rfc,
                    "business_name": record.business_name,
                    "address": {"zip": record.postal_code},
                },
                fallback_message="Failed to save the fiscal data.",
            )
        except AdapterError as exc:
            return OperationResult.failed(exc.message)
        return OperationResult.ok()
