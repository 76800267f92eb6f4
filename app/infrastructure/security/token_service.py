from __future__ import annotations

import jwt

from app.application.dto.auth import AccessTokenPayload
from app.application.ports.token_port import TokenPort
from app.domain.exceptions import InvalidTokenError


class KeycloakTokenService(TokenPort):
    """Verifies bearer tokens issued by the identity broker.

    Uses the realm JWKS (RS256) when configured, otherwise an HS256 shared
    secret for local development.
    """

    def __init__(
        self,
        *,
        jwks_url: str = "",
        audience: str = "",
        jwt_secret: str = "",
    ):
        if not jwks_url and not jwt_secret:
            raise ValueError("Either jwks_url or jwt_secret is required.")
        self._jwks_client = jwt.PyJWKClient(jwks_url) if jwks_url else None
        self._audience = audience or None
        self._jwt_secret = jwt_secret

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        options = {"verify_aud": self._audience is not None}
        try:
            if self._jwks_client is not None:
                signing_key = self._jwks_client.get_signing_key_from_jwt(token)
                payload = jwt.decode(
                    token,
                    signing_key.key,
                    algorithms=["RS256"],
                    audience=self._audience,
                    options=options,
                )
            else:
                payload = jwt.decode(
                    token,
                    self._jwt_secret,
                    algorithms=["HS256"],
                    audience=self._audience,
                    options=options,
                )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError("Invalid access token.") from exc

        subject = payload.get("sub")
        if not subject or not isinstance(subject, str):
            raise InvalidTokenError("Invalid token subject.")

        email = payload.get("email") or payload.get("preferred_username")
        if not email or not isinstance(email, str):
            raise InvalidTokenError("Token has no email claim.")

        return AccessTokenPayload(subject=subject, email=email.strip().lower())
