from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AccessTokenPayload:
    subject: str
    email: str


@dataclass(frozen=True)
class RequestIdentity:
    access_token: str
    subject: str
    email: str
