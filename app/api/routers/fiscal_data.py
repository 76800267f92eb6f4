from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_get_fiscal_data_use_case, get_request_identity, get_save_fiscal_data_use_case
from app.api.errors import to_http_exception
from app.api.schemas.fiscal_data import FiscalDataEnvelope, FiscalDataRequest, FiscalDataResponse
from app.application.dto.auth import RequestIdentity
from app.application.dto.fiscal_data import SaveFiscalDataInput
from app.application.use_cases.get_fiscal_data import GetFiscalDataUseCase
from app.application.use_cases.save_fiscal_data import SaveFiscalDataUseCase
from app.domain.entities.fiscal import FiscalRecord
from app.domain.exceptions import DomainError


router = APIRouter()


def to_fiscal_data_response(record: FiscalRecord) -> FiscalDataResponse:
    return FiscalDataResponse(
        taxpayer_type=record.taxpayer_type,
        rfc=record.rfc,
        business_name=record.business_name,
        postal_code=record.postal_code,
        tax_regime=record.tax_regime,
    )


@router.get("/v1/fiscal-data/{shop_id}", response_model=FiscalDataEnvelope)
def get_fiscal_data(
    shop_id: int,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: GetFiscalDataUseCase = Depends(get_get_fiscal_data_use_case),
):
    try:
        record = use_case.execute(shop_id=shop_id, email=identity.email)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    if record is None:
        return FiscalDataEnvelope(exists=False)
    return FiscalDataEnvelope(exists=True, data=to_fiscal_data_response(record))


@router.patch("/v1/fiscal-data/{shop_id}", response_model=FiscalDataResponse)
def save_fiscal_data(
    shop_id: int,
    req: FiscalDataRequest,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: SaveFiscalDataUseCase = Depends(get_save_fiscal_data_use_case),
):
    try:
        record = use_case.execute(
            SaveFiscalDataInput(
                shop_id=shop_id,
                rfc=req.rfc,
                business_name=req.business_name,
                postal_code=req.postal_code,
                taxpayer_type=req.taxpayer_type,
                tax_regime=req.tax_regime,
            ),
            email=identity.email,
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return to_fiscal_data_response(record)
