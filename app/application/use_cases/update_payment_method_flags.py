from __future__ import annotations

from app.application.dto.operations import OperationResult
from app.application.dto.payment_methods import UpdatePaymentMethodFlagsInput
from app.application.ports.card_vault_port import CardVaultPort
from app.application.ports.identity_port import IdentityPort
from app.application.use_cases.store_common import require_store_access
from app.domain.exceptions import AdapterError


class SetDefaultPaymentMethodUseCase:
    def __init__(self, *, card_vault_port: CardVaultPort, identity_port: IdentityPort):
        self._card_vault_port = card_vault_port
        self._identity_port = identity_port

    def execute(self, command: UpdatePaymentMethodFlagsInput) -> OperationResult:
        store = require_store_access(
            identity_port=self._identity_port,
            store_id=command.shop_id,
            email=command.email,
        )
        result = self._card_vault_port.set_default(
            card_id=command.card_id,
            seller_id=store.seller_id,
            email=command.email,
        )
        if not result.success:
            raise AdapterError(result.error or "Could not set the default card.", service="card_vault")
        return result


class SetBackupPaymentMethodUseCase:
    def __init__(self, *, card_vault_port: CardVaultPort, identity_port: IdentityPort):
        self._card_vault_port = card_vault_port
        self._identity_port = identity_port

    def execute(self, command: UpdatePaymentMethodFlagsInput) -> OperationResult:
        store = require_store_access(
            identity_port=self._identity_port,
            store_id=command.shop_id,
            email=command.email,
        )
        result = self._card_vault_port.set_backup(
            card_id=command.card_id,
            seller_id=store.seller_id,
            email=command.email,
            backup=True if command.backup is None else command.backup,
        )
        if not result.success:
            raise AdapterError(result.error or "Could not update the backup card.", service="card_vault")
        return result
