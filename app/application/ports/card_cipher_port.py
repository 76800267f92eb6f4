from __future__ import annotations

from typing import Protocol


class CardCipherPort(Protocol):
    def encrypt_json(self, payload: dict) -> str:
        ...
