from __future__ import annotations

from typing import Protocol

from app.domain.entities.store import StoreProfile, UserAccess


class IdentityPort(Protocol):
    def get_store(self, *, store_id: int) -> StoreProfile:
        ...

    def get_user_access(self, *, store_id: int, email: str) -> UserAccess:
        ...
