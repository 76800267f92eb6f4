from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from app.application.dto.auth import RequestIdentity
from app.application.use_cases.create_payment_method import CreatePaymentMethodUseCase
from app.application.use_cases.delete_payment_method import DeletePaymentMethodUseCase
from app.application.use_cases.get_fiscal_data import GetFiscalDataUseCase
from app.application.use_cases.list_payment_methods import ListPaymentMethodsUseCase
from app.application.use_cases.load_checkout_context import LoadCheckoutContextUseCase
from app.application.use_cases.quote_checkout import QuoteCheckoutUseCase
from app.application.use_cases.save_fiscal_data import SaveFiscalDataUseCase
from app.application.use_cases.submit_checkout import SubmitCheckoutUseCase
from app.application.use_cases.update_payment_method_flags import (
    SetBackupPaymentMethodUseCase,
    SetDefaultPaymentMethodUseCase,
)
from app.application.use_cases.verify_card_bin import VerifyCardBinUseCase
from app.domain.entities.store import UserAccess
from app.domain.exceptions import CardEncryptionError, InvalidTokenError
from app.infrastructure.cache.ttl_cache import TtlCache
from app.infrastructure.clients.card_vault_client import CardVaultClient
from app.infrastructure.clients.fiscal_data_client import FiscalDataClient
from app.infrastructure.clients.identity_client import IdentityClient, UserAccessPolicy
from app.infrastructure.clients.service_client import ServiceClientSettings
from app.infrastructure.clients.subscription_client import SubscriptionClient
from app.infrastructure.security.card_cipher import FernetCardCipher
from app.infrastructure.security.token_service import KeycloakTokenService
from app.core.config import get_settings


def _service_settings(base_url: str, env_name: str) -> ServiceClientSettings:
    if not base_url:
        raise HTTPException(status_code=500, detail=f"{env_name} is required.")
    return ServiceClientSettings(
        base_url=base_url,
        timeout_seconds=get_settings().http_timeout_seconds,
    )


@lru_cache(maxsize=1)
def _get_token_service() -> KeycloakTokenService:
    settings = get_settings()
    if not settings.keycloak_jwks_url and not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="KEYCLOAK_JWKS_URL or JWT_SECRET is required.")
    return KeycloakTokenService(
        jwks_url=settings.keycloak_jwks_url,
        audience=settings.keycloak_audience,
        jwt_secret=settings.jwt_secret,
    )


@lru_cache(maxsize=1)
def _get_card_cipher() -> FernetCardCipher:
    settings = get_settings()
    if not settings.card_encryption_key:
        raise HTTPException(status_code=500, detail="CARD_ENCRYPTION_KEY is required.")
    try:
        return FernetCardCipher(key=settings.card_encryption_key)
    except CardEncryptionError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@lru_cache(maxsize=1)
def _get_user_access_cache() -> TtlCache[UserAccess]:
    settings = get_settings()
    return TtlCache(
        ttl_seconds=settings.user_access_cache_ttl_seconds,
        max_size=settings.user_access_cache_max_size,
    )


def get_request_identity(
    authorization: str = Header(...),
) -> RequestIdentity:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header.")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing access token.")

    token_service = _get_token_service()
    try:
        payload = token_service.decode_access_token(token=token)
    except InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return RequestIdentity(access_token=token, subject=payload.subject, email=payload.email)


def _subscription_client(identity: RequestIdentity) -> SubscriptionClient:
    settings = get_settings()
    return SubscriptionClient(
        _service_settings(settings.subscription_url, "SUBSCRIPTION_URL"),
        access_token=identity.access_token,
    )


def _card_vault_client(identity: RequestIdentity) -> CardVaultClient:
    settings = get_settings()
    return CardVaultClient(
        _service_settings(settings.payment_service_url, "PAYMENT_SERVICE_URL"),
        access_token=identity.access_token,
        cipher=_get_card_cipher(),
    )


def _fiscal_data_client(identity: RequestIdentity) -> FiscalDataClient:
    settings = get_settings()
    if not settings.identity_url:
        raise HTTPException(status_code=500, detail="IDENTITY_URL is required.")
    return FiscalDataClient(
        _service_settings(settings.wallet_url, "WALLET_URL"),
        access_token=identity.access_token,
        identity_base_url=settings.identity_url,
    )


def _identity_client(identity: RequestIdentity) -> IdentityClient:
    settings = get_settings()
    return IdentityClient(
        _service_settings(settings.identity_url, "IDENTITY_URL"),
        access_token=identity.access_token,
        access_cache=_get_user_access_cache(),
        policy=UserAccessPolicy(max_retries=settings.user_access_max_retries),
    )


def _load_checkout_context_use_case(identity: RequestIdentity) -> LoadCheckoutContextUseCase:
    settings = get_settings()
    subscription_client = _subscription_client(identity)
    return LoadCheckoutContextUseCase(
        plan_catalog_port=subscription_client,
        subscription_port=subscription_client,
        card_vault_port=_card_vault_client(identity),
        fiscal_data_port=_fiscal_data_client(identity),
        identity_port=_identity_client(identity),
        default_country_code=settings.default_country_code,
        prices_include_tax=settings.prices_include_tax,
        strict_country_pricing=settings.strict_country_pricing,
    )


def get_load_checkout_context_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> LoadCheckoutContextUseCase:
    return _load_checkout_context_use_case(identity)


def get_quote_checkout_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> QuoteCheckoutUseCase:
    settings = get_settings()
    return QuoteCheckoutUseCase(
        plan_catalog_port=_subscription_client(identity),
        load_checkout_context_use_case=_load_checkout_context_use_case(identity),
        default_country_code=settings.default_country_code,
        prices_include_tax=settings.prices_include_tax,
        strict_country_pricing=settings.strict_country_pricing,
    )


def get_submit_checkout_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> SubmitCheckoutUseCase:
    settings = get_settings()
    return SubmitCheckoutUseCase(
        load_checkout_context_use_case=_load_checkout_context_use_case(identity),
        subscription_port=_subscription_client(identity),
        card_vault_port=_card_vault_client(identity),
        fiscal_data_port=_fiscal_data_client(identity),
        success_url=settings.checkout_success_url,
    )


def get_list_payment_methods_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> ListPaymentMethodsUseCase:
    return ListPaymentMethodsUseCase(
        card_vault_port=_card_vault_client(identity),
        identity_port=_identity_client(identity),
    )


def get_create_payment_method_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> CreatePaymentMethodUseCase:
    return CreatePaymentMethodUseCase(
        card_vault_port=_card_vault_client(identity),
        identity_port=_identity_client(identity),
    )


def get_set_default_payment_method_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> SetDefaultPaymentMethodUseCase:
    return SetDefaultPaymentMethodUseCase(
        card_vault_port=_card_vault_client(identity),
        identity_port=_identity_client(identity),
    )


def get_set_backup_payment_method_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> SetBackupPaymentMethodUseCase:
    return SetBackupPaymentMethodUseCase(
        card_vault_port=_card_vault_client(identity),
        identity_port=_identity_client(identity),
    )


def get_delete_payment_method_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> DeletePaymentMethodUseCase:
    return DeletePaymentMethodUseCase(
        card_vault_port=_card_vault_client(identity),
        identity_port=_identity_client(identity),
        subscription_port=_subscription_client(identity),
    )


def get_verify_card_bin_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> VerifyCardBinUseCase:
    return VerifyCardBinUseCase(card_vault_port=_card_vault_client(identity))


def get_get_fiscal_data_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> GetFiscalDataUseCase:
    return GetFiscalDataUseCase(
        fiscal_data_port=_fiscal_data_client(identity),
        identity_port=_identity_client(identity),
    )


def get_save_fiscal_data_use_case(
    identity: RequestIdentity = Depends(get_request_identity),
) -> SaveFiscalDataUseCase:
    return SaveFiscalDataUseCase(
        fiscal_data_port=_fiscal_data_client(identity),
        identity_port=_identity_client(identity),
    )
