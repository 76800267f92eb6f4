from __future__ import annotations

from app.application.dto.fiscal_data import SaveFiscalDataInput
from app.application.ports.fiscal_data_port import FiscalDataPort
from app.application.ports.identity_port import IdentityPort
from app.application.use_cases.store_common import require_store_access
from app.domain.entities.fiscal import FiscalRecord
from app.domain.exceptions import AdapterError
from app.domain.services.fiscal import build_fiscal_record


class SaveFiscalDataUseCase:
    def __init__(self, *, fiscal_data_port: FiscalDataPort, identity_port: IdentityPort):
        self._fiscal_data_port = fiscal_data_port
        self._identity_port = identity_port

    def execute(self, command: SaveFiscalDataInput, *, email: str) -> FiscalRecord:
        record = build_fiscal_record(
            rfc=command.rfc,
            business_name=command.business_name,
            postal_code=command.postal_code,
            taxpayer_type=command.taxpayer_type,
            tax_regime=command.tax_regime,
        )
        require_store_access(identity_port=self._identity_port, store_id=command.shop_id, email=email)
        result = self._fiscal_data_port.save(store_id=command.shop_id, record=record)
        if not result.success:
            raise AdapterError(result.error or "Could not save the fiscal data.", service="fiscal_data")
        return record
