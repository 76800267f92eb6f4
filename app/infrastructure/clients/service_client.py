from __future__ import annotations

from dataclasses import dataclass
import logging

import httpx

from app.domain.exceptions import AdapterError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceClientSettings:
    base_url: str
    timeout_seconds: float
    transport: httpx.BaseTransport | None = None


def extract_error_message(payload: object) -> str | None:
    """Reads the human message from a collaborator error envelope, if any."""
    if not isinstance(payload, dict):
        return None
    meta = payload.get("metaData")
    if isinstance(meta, dict) and isinstance(meta.get("message"), str) and meta["message"]:
        return meta["message"]
    for key in ("message", "detail", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return value["message"]
    return None


class ServiceClient:
    """Bearer-authenticated JSON client shared by the microservice adapters."""

    service_name = "service"

    def __init__(self, settings: ServiceClientSettings, *, access_token: str):
        if not settings.base_url:
            raise AdapterError(f"{self.service_name} base URL is not configured.", service=self.service_name)
        self._settings = settings
        self._access_token = access_token

    def _headers(self, extra: dict | None = None) -> dict:
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _url(self, path: str, base_url: str | None = None) -> str:
        base = base_url or self._settings.base_url
        return f"{base.rstrip('/')}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        fallback_message: str,
        json: dict | None = None,
        params: dict | None = None,
        headers: dict | None = None,
        base_url: str | None = None,
        not_found_ok: bool = False,
        return_error_body: bool = False,
    ) -> dict | None:
        """Performs one call and returns the decoded JSON body.

        Returns None on 404 when ``not_found_ok``. With ``return_error_body``
        a JSON error envelope is returned instead of raised, for endpoints
        that report field errors in the body of a non-2xx response.
        """
        try:
            with httpx.Client(
                timeout=self._settings.timeout_seconds,
                transport=self._settings.transport,
            ) as client:
                response = client.request(
                    method,
                    self._url(path, base_url),
                    json=json,
                    params=params,
                    headers=self._headers(headers),
                )
        except httpx.HTTPError as exc:
            logger.warning(
                "%s_client: request_failed method=%s path=%s error=%s",
                self.service_name,
                method,
                path,
                exc,
            )
            raise AdapterError(fallback_message, service=self.service_name) from exc

        if response.status_code == 404 and not_found_ok:
            return None

        payload = _decode(response)
        if response.is_success:
            if payload is None:
                if not response.content:
                    return {}
                raise AdapterError(fallback_message, service=self.service_name, status_code=response.status_code)
            return payload

        message = extract_error_message(payload) or fallback_message
        logger.warning(
            "%s_client: error_response method=%s path=%s status=%s error=%s",
            self.service_name,
            method,
            path,
            response.status_code,
            message,
        )
        if return_error_body and isinstance(payload, dict):
            return payload
        raise AdapterError(message, service=self.service_name, status_code=response.status_code)


def _decode(response: httpx.Response) -> dict | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, list):
        return {"data": payload}
    return None
