from __future__ import annotations

import json

from cryptography.fernet import Fernet

from app.application.ports.card_cipher_port import CardCipherPort
from app.domain.exceptions import CardEncryptionError


class FernetCardCipher(CardCipherPort):
    """Symmetric encryption of card payloads with the key shared with the vault."""

    def __init__(self, *, key: str):
        if not key:
            raise CardEncryptionError("Card encryption key is not configured.")
        try:
            self._fernet = Fernet(key.encode("utf-8"))
        except ValueError as exc:
            raise CardEncryptionError("Card encryption key is invalid.") from exc

    def encrypt_json(self, payload: dict) -> str:
        plaintext = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt_json(self, token: str) -> dict:
        return json.loads(self._fernet.decrypt(token.encode("ascii")).decode("utf-8"))
