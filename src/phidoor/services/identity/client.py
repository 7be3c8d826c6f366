# src/phidoor/services/identity/client.py
from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from phidoor.config import const
from phidoor.services.errors import ConfigurationError, NetworkError, ServerRejection

_log = logging.getLogger("phidoor.client")


def tls_verification(value: bool | str | ssl.SSLContext) -> bool | ssl.SSLContext:
    """Turn the ``verify_tls`` setting into what ``httpx`` accepts.

    A string is the path of a CA bundle.
    """
    if not isinstance(value, str):
        return value
    try:
        return ssl.create_default_context(cafile=value)
    except (OSError, ssl.SSLError) as exc:
        raise ConfigurationError(f"cannot load CA bundle {value}: {exc}") from exc


@dataclass(slots=True)
class DoorHttpClient:
    """HTTP transport for the door server's ``/register`` and ``/operate`` endpoints."""

    base_url: str = const.SERVER_URL
    timeout: float = const.HTTP_TIMEOUT
    verify: bool | ssl.SSLContext = True
    # swapped for httpx.MockTransport in tests
    transport: httpx.BaseTransport | None = None

    @classmethod
    def from_settings(cls, settings: Any, *, transport: httpx.BaseTransport | None = None) -> "DoorHttpClient":
        return cls(
            base_url=settings.server_url,
            timeout=settings.timeout,
            verify=tls_verification(settings.verify_tls),
            transport=transport,
        )

    def register(self, payload: Mapping[str, Any]) -> Any:
        return self._request("POST", const.REGISTER_PATH, json=payload)

    def operate(self, payload: Mapping[str, Any]) -> Any:
        return self._request("POST", const.OPERATE_PATH, json=payload)

    def _request(self, method: str, path: str, *, json: Mapping[str, Any] | None = None) -> Any:
        base_url = (self.base_url or "").rstrip("/")
        if not base_url:
            raise ConfigurationError("server URL is not configured")

        try:
            with httpx.Client(
                base_url=base_url,
                timeout=self.timeout,
                verify=self.verify,
                transport=self.transport,
            ) as client:
                response = client.request(method, path, json=json)
        except httpx.RequestError as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        content: Any | None = None
        if response.content:
            try:
                content = response.json()
            except ValueError:
                content = response.text

        _log.debug("client: response", extra={"path": path, "status": response.status_code})

        if response.status_code >= 400:
            error_code: str | None = None
            message = response.text or f"HTTP {response.status_code}"
            if isinstance(content, Mapping):
                detail = content.get("detail") or content.get("message") or content.get("error")
                if isinstance(detail, str):
                    message = detail
                code = content.get("code") or content.get("error")
                if isinstance(code, str):
                    error_code = code
            raise ServerRejection(message, status_code=response.status_code, error_code=error_code, payload=content)

        if content is None:
            return {}
        return content


__all__ = ["DoorHttpClient", "tls_verification"]
