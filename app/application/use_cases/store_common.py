from __future__ import annotations

from datetime import datetime, timezone

from app.application.ports.identity_port import IdentityPort
from app.domain.entities.store import StoreProfile
from app.domain.exceptions import AccessDeniedError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def require_store_access(*, identity_port: IdentityPort, store_id: int, email: str) -> StoreProfile:
    access = identity_port.get_user_access(store_id=store_id, email=email)
    if not access.has_access:
        raise AccessDeniedError("You do not have access to this store.")
    return identity_port.get_store(store_id=store_id)
