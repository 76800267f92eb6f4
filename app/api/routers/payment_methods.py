from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import (
    get_create_payment_method_use_case,
    get_delete_payment_method_use_case,
    get_list_payment_methods_use_case,
    get_request_identity,
    get_set_backup_payment_method_use_case,
    get_set_default_payment_method_use_case,
    get_verify_card_bin_use_case,
)
from app.api.errors import to_http_exception
from app.api.schemas.payment_methods import (
    BinInfoResponse,
    CardExpiryResponse,
    CreatePaymentMethodResponse,
    NewCardRequest,
    OperationResponse,
    SavedCardResponse,
    SetBackupRequest,
)
from app.application.dto.auth import RequestIdentity
from app.application.dto.checkout import SavedCardView
from app.application.dto.payment_methods import CreatePaymentMethodInput, UpdatePaymentMethodFlagsInput
from app.application.use_cases.create_payment_method import CreatePaymentMethodUseCase
from app.application.use_cases.delete_payment_method import DeletePaymentMethodUseCase
from app.application.use_cases.list_payment_methods import ListPaymentMethodsUseCase
from app.application.use_cases.update_payment_method_flags import (
    SetBackupPaymentMethodUseCase,
    SetDefaultPaymentMethodUseCase,
)
from app.application.use_cases.verify_card_bin import VerifyCardBinUseCase
from app.domain.entities.card import NewCardFields
from app.domain.exceptions import DomainError


router = APIRouter()


def to_new_card_fields(req: NewCardRequest) -> NewCardFields:
    return NewCardFields(
        holder_name=req.holder_name,
        card_number=req.card_number,
        expiration=req.expiration,
        cvv=req.cvv,
        zip_code=req.zip_code,
        address=req.address,
        city=req.city,
        state=req.state,
        country=req.country,
        phone=req.phone,
        card_type=req.card_type,
        secondary=req.secondary,
    )


def to_saved_card_response(view: SavedCardView) -> SavedCardResponse:
    card = view.card
    return SavedCardResponse(
        id=card.id,
        brand=card.brand,
        last4=card.last4,
        holder_name=card.holder_name,
        expiration_month=card.expiration_month,
        expiration_year=card.expiration_year,
        expires_at=card.expires_at,
        is_default=card.is_default,
        is_backup=card.is_backup,
        card_type=card.card_type,
        status=card.status,
        expiry=CardExpiryResponse(
            expired=view.expiry.expired,
            days_left=view.expiry.days_left,
            almost_expired=view.expiry.almost_expired,
        ),
        submit_allowed=view.submit_allowed,
    )


@router.get("/v1/payment-methods/bin/{bin_number}", response_model=list[BinInfoResponse])
def verify_card_bin(
    bin_number: str,
    use_case: VerifyCardBinUseCase = Depends(get_verify_card_bin_use_case),
):
    try:
        rows = use_case.execute(bin_number=bin_number)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return [BinInfoResponse(code=row.code, description=row.description, name=row.name) for row in rows]


@router.get("/v1/payment-methods/{shop_id}", response_model=list[SavedCardResponse])
def list_payment_methods(
    shop_id: int,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: ListPaymentMethodsUseCase = Depends(get_list_payment_methods_use_case),
):
    try:
        views = use_case.execute(shop_id=shop_id, email=identity.email)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return [to_saved_card_response(view) for view in views]


@router.post("/v1/payment-methods/{shop_id}", response_model=CreatePaymentMethodResponse, status_code=201)
def create_payment_method(
    shop_id: int,
    req: NewCardRequest,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: CreatePaymentMethodUseCase = Depends(get_create_payment_method_use_case),
):
    try:
        output = use_case.execute(
            CreatePaymentMethodInput(
                shop_id=shop_id,
                email=identity.email,
                fields=to_new_card_fields(req),
            )
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return CreatePaymentMethodResponse(card_id=output.card_id)


@router.put("/v1/payment-methods/{shop_id}/{card_id}/default", response_model=OperationResponse)
def set_default_payment_method(
    shop_id: int,
    card_id: str,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: SetDefaultPaymentMethodUseCase = Depends(get_set_default_payment_method_use_case),
):
    try:
        result = use_case.execute(
            UpdatePaymentMethodFlagsInput(shop_id=shop_id, card_id=card_id, email=identity.email)
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return OperationResponse(success=result.success, message=result.message)


@router.put("/v1/payment-methods/{shop_id}/{card_id}/backup", response_model=OperationResponse)
def set_backup_payment_method(
    shop_id: int,
    card_id: str,
    req: SetBackupRequest,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: SetBackupPaymentMethodUseCase = Depends(get_set_backup_payment_method_use_case),
):
    try:
        result = use_case.execute(
            UpdatePaymentMethodFlagsInput(
                shop_id=shop_id,
                card_id=card_id,
                email=identity.email,
                backup=req.backup,
            )
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return OperationResponse(success=result.success, message=result.message)


@router.delete("/v1/payment-methods/{shop_id}/{card_id}", response_model=OperationResponse)
def delete_payment_method(
    shop_id: int,
    card_id: str,
    identity: RequestIdentity = Depends(get_request_identity),
    use_case: DeletePaymentMethodUseCase = Depends(get_delete_payment_method_use_case),
):
    if not card_id.strip():
        raise HTTPException(status_code=400, detail="card_id is required.")
    try:
        result = use_case.execute(shop_id=shop_id, card_id=card_id, email=identity.email)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return OperationResponse(success=result.success, message=result.message)
