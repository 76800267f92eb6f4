from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: str = "false") -> bool:
    return (_env(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


def _list(name: str, default: str = "") -> list[str]:
    value = _env(name, default) or ""
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    subscription_url: str
    payment_service_url: str
    wallet_url: str
    identity_url: str
    card_encryption_key: str
    http_timeout_seconds: float
    default_country_code: str
    prices_include_tax: bool
    strict_country_pricing: bool
    checkout_success_url: str
    user_access_cache_ttl_seconds: float
    user_access_cache_max_size: int
    user_access_max_retries: int
    keycloak_jwks_url: str
    keycloak_audience: str
    jwt_secret: str
    cors_allow_origins: list[str]
    log_level: str


def get_settings() -> Settings:
    return Settings(
        subscription_url=_env("SUBSCRIPTION_URL", ""),
        payment_service_url=_env("PAYMENT_SERVICE_URL", ""),
        wallet_url=_env("WALLET_URL", ""),
        identity_url=_env("IDENTITY_URL", ""),
        card_encryption_key=_env("CARD_ENCRYPTION_KEY", ""),
        http_timeout_seconds=float(_env("HTTP_TIMEOUT_SECONDS", "15")),
        default_country_code=(_env("DEFAULT_COUNTRY_CODE", "MX") or "MX").upper(),
        prices_include_tax=_bool("PRICES_INCLUDE_TAX"),
        strict_country_pricing=_bool("STRICT_COUNTRY_PRICING"),
        checkout_success_url=_env("CHECKOUT_SUCCESS_URL", "/success"),
        user_access_cache_ttl_seconds=float(_env("USER_ACCESS_CACHE_TTL_SECONDS", "60")),
        user_access_cache_max_size=int(_env("USER_ACCESS_CACHE_MAX_SIZE", "1024")),
        user_access_max_retries=int(_env("USER_ACCESS_MAX_RETRIES", "5")),
        keycloak_jwks_url=_env("KEYCLOAK_JWKS_URL", ""),
        keycloak_audience=_env("KEYCLOAK_AUDIENCE", ""),
        jwt_secret=_env("JWT_SECRET", ""),
        cors_allow_origins=_list("CORS_ALLOW_ORIGINS", "*"),
        log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
