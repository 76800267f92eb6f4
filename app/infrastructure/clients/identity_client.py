from __future__ import annotations

from dataclasses import dataclass
import logging
import time

from app.application.ports.identity_port import IdentityPort
from app.domain.entities.store import StoreProfile, UserAccess
from app.domain.exceptions import AdapterError
from app.infrastructure.cache.ttl_cache import TtlCache
from app.infrastructure.clients.service_client import ServiceClient, ServiceClientSettings


logger = logging.getLogger(__name__)

SERVICE_TYPE = "store"


@dataclass(frozen=True)
class UserAccessPolicy:
    max_retries: int = 5
    initial_delay_seconds: float = 0.25


def user_access_cache_key(*, email: str, store_id: int) -> str:
    return f"{email}_{store_id}"


class IdentityClient(ServiceClient, IdentityPort):
    service_name = "identity"

    def __init__(
        self,
        settings: ServiceClientSettings,
        *,
        access_token: str,
        access_cache: TtlCache[UserAccess],
        policy: UserAccessPolicy | None = None,
    ):
        super().__init__(settings, access_token=access_token)
        self._access_cache = access_cache
        self._policy = policy or UserAccessPolicy()

    def get_store(self, *, store_id: int) -> StoreProfile:
        payload = self._request(
            "GET",
            f"stores/{store_id}",
            fallback_message="Failed to fetch store data.",
        )
        data = payload.get("data")
        if not isinstance(data, dict) or data.get("id_seller") is None:
            raise AdapterError("Store data is incomplete.", service=self.service_name)
        payments = (data.get("services") or {}).get("payments") or {}
        return StoreProfile(
            store_id=store_id,
            seller_id=int(data["id_seller"]),
            store_name=str(data.get("store_name") or ""),
            payment_customer_id=payments.get("payment_id") or None,
        )

    def get_user_access(self, *, store_id: int, email: str) -> UserAccess:
        key = user_access_cache_key(email=email, store_id=store_id)
        cached = self._access_cache.get(key)
        if cached is not None:
            logger.debug("identity_client: user_access_cache_hit store_id=%s", store_id)
            return cached
        logger.debug("identity_client: user_access_cache_miss store_id=%s", store_id)

        attempts = max(1, self._policy.max_retries)
        delay = self._policy.initial_delay_seconds
        last_exc: AdapterError | None = None
        for attempt in range(1, attempts + 1):
            try:
                payload = self._request(
                    "GET",
                    f"user_access/{store_id}",
                    params={"service": SERVICE_TYPE},
                    fallback_message="Failed to fetch user access.",
                )
            except AdapterError as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "identity_client: user_access_retry attempt=%s/%s error=%s",
                    attempt,
                    attempts,
                    exc.message,
                )
                time.sleep(delay)
                delay *= 2
                continue

            data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
            access = UserAccess(has_access=bool(data.get("has_access")), data=data)
            self._access_cache.set(key, access)
            return access

        logger.warning(
            "identity_client: user_access_unavailable store_id=%s error=%s",
            store_id,
            last_exc.message if last_exc else None,
        )
        return UserAccess(has_access=False)
