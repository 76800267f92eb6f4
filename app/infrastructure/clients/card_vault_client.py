from __future__ import annotations

import logging

from app.application.dto.operations import BinInfo, CreateCardResult, OperationResult
from app.application.ports.card_cipher_port import CardCipherPort
from app.application.ports.card_vault_port import CardVaultPort
from app.domain.entities.card import NewCardFields, SavedCard
from app.domain.exceptions import AdapterError
from app.infrastructure.clients.service_client import ServiceClient, ServiceClientSettings


logger = logging.getLogger(__name__)

BASE_PATH = "/t1-store-global-invoice"
SERVICE_TYPE = "store"
CREATE_CARD_FALLBACK = "An unexpected error occurred, try another payment method."


def build_card_payload(
    *,
    fields: NewCardFields,
    customer_id: str | None,
    seller_id: int,
    store_name: str,
    email: str,
) -> dict:
    """Plaintext card document; only ever sent encrypted."""
    month, year = fields.expiration_parts()
    return {
        "service": SERVICE_TYPE,
        "creado_por": email,
        "seller": {
            "id": seller_id,
            "nombre": store_name,
        },
        "tarjeta_info": {
            "nombre": fields.holder_name.strip(),
            "pan": fields.digits,
            "cvv2": fields.cvv,
            "expiracion_mes": month,
            "expiracion_anio": year,
            "direccion": {
                "linea1": fields.address,
                "cp": fields.zip_code,
                "telefono": {
                    "numero": fields.phone,
                },
                "municipio": fields.city,
                "ciudad": fields.city,
                "estado": fields.state,
                "pais": fields.country,
            },
            "cliente_id": customer_id,
            "default": False,
            "cargo_unico": False,
            "type": fields.card_type,
        },
    }


def map_saved_card(row: dict) -> SavedCard:
    year = int(row.get("expiration_year") or 0)
    return SavedCard(
        id=str(row["id"]),
        brand=str(row.get("brand") or "unknown").lower(),
        last4=str(row.get("termination") or "")[-4:],
        holder_name=str(row.get("name") or ""),
        expiration_month=int(row.get("expiration_month") or 0),
        expiration_year=year + 2000 if year < 100 else year,
        is_default=bool(row.get("default")),
        is_backup=bool(row.get("backup")),
        card_type=str(row.get("type") or "credit_card"),
        status=str(row.get("status") or "active"),
    )


class CardVaultClient(ServiceClient, CardVaultPort):
    service_name = "card_vault"

    def __init__(
        self,
        settings: ServiceClientSettings,
        *,
        access_token: str,
        cipher: CardCipherPort,
    ):
        super().__init__(settings, access_token=access_token)
        self._cipher = cipher

    def list_cards(self, *, customer_id: str) -> list[SavedCard]:
        payload = self._request(
            "GET",
            f"{BASE_PATH}/cards/{customer_id}",
            fallback_message="Failed to fetch payment cards.",
            not_found_ok=True,
        )
        if payload is None:
            return []
        rows = payload.get("data") or []
        return [map_saved_card(row) for row in rows if isinstance(row, dict) and row.get("id")]

    def create_card(
        self,
        *,
        fields: NewCardFields,
        customer_id: str | None,
        seller_id: int,
        store_name: str,
        email: str,
    ) -> CreateCardResult:
        encrypted = self._cipher.encrypt_json(
            build_card_payload(
                fields=fields,
                customer_id=customer_id,
                seller_id=seller_id,
                store_name=store_name,
                email=email,
            )
        )
        try:
            payload = self._request(
                "POST",
                f"{BASE_PATH}/card",
                json={
                    "encrypted_data": encrypted,
                    "created_by": email,
                    "type": fields.card_type,
                },
                fallback_message=CREATE_CARD_FALLBACK,
                return_error_body=True,
            )
        except AdapterError as exc:
            return CreateCardResult(success=False, error=exc.message)

        if not payload.get("success"):
            return CreateCardResult(
                success=False,
                error=payload.get("message") or CREATE_CARD_FALLBACK,
                cvv_error=bool(payload.get("cvv_err")),
            )

        data = payload.get("data") or {}
        card_id = data.get("id")
        if card_id is None:
            return CreateCardResult(success=False, error=CREATE_CARD_FALLBACK)
        card_id = str(card_id)
        logger.info("card_vault_client: card_created seller_id=%s card_id=%s", seller_id, card_id)

        if fields.secondary:
            backup = self.set_backup(
                card_id=card_id,
                seller_id=seller_id,
                email=email,
                backup=True,
            )
            if not backup.success:
                logger.warning(
                    "card_vault_client: backup_flag_failed card_id=%s error=%s",
                    card_id,
                    backup.error,
                )
        return CreateCardResult(success=True, card_id=card_id)

    def set_default(self, *, card_id: str, seller_id: int, email: str) -> OperationResult:
        try:
            self._request(
                "PUT",
                f"{BASE_PATH}/cards/seller/{seller_id}/card/{card_id}/default",
                json={"updated_by": email},
                fallback_message="Failed to set default payment method.",
            )
        except AdapterError as exc:
            return OperationResult.failed(exc.message)
        return OperationResult.ok()

    def set_backup(self, *, card_id: str, seller_id: int, email: str, backup: bool) -> OperationResult:
        try:
            self._request(
                "PUT",
                f"{BASE_PATH}/cards/seller/{seller_id}/card/{card_id}/backup",
                json={"backup": backup, "updated_by": email},
                fallback_message="Failed to set backup payment method.",
            )
        except AdapterError as exc:
            return OperationResult.failed(exc.message)
        return OperationResult.ok()

    def delete_card(self, *, card_id: str) -> OperationResult:
        try:
            self._request(
                "DELETE",
                f"{BASE_PATH}/card/{card_id}",
                fallback_message="Failed to delete payment card.",
            )
        except AdapterError as exc:
            return OperationResult.failed(exc.message)
        return OperationResult.ok()

    def verify_bin(self, *, bin_number: str) -> list[BinInfo]:
        payload = self._request(
            "GET",
            f"{BASE_PATH}/bin/verify",
            params={"bin": bin_number},
            fallback_message="Failed to verify card.",
        )
        rows = payload.get("data") or []
        return [
            BinInfo(
                code=str(row.get("clave") or ""),
                description=str(row.get("descripcion") or ""),
                name=str(row.get("nombre") or ""),
            )
            for row in rows
            if isinstance(row, dict)
        ]
