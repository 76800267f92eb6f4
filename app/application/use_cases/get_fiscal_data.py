from __future__ import annotations

from app.application.ports.fiscal_data_port import FiscalDataPort
from app.application.ports.identity_port import IdentityPort
from app.application.use_cases.store_common import require_store_access
from app.domain.entities.fiscal import FiscalRecord


class GetFiscalDataUseCase:
    def __init__(self, *, fiscal_data_port: FiscalDataPort, identity_port: IdentityPort):
        self._fiscal_data_port = fiscal_data_port
        self._identity_port = identity_port

    def execute(self, *, shop_id: int, email: str) -> FiscalRecord | None:
        store = require_store_access(identity_port=self._identity_port, store_id=shop_id, email=email)
        return self._fiscal_data_port.get(seller_id=store.seller_id)
