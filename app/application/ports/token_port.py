from __future__ import annotations

from typing import Protocol

from app.application.dto.auth import AccessTokenPayload


class TokenPort(Protocol):
    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        ...
