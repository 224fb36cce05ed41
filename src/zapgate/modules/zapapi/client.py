"""Async client for the scanner's control API."""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from zapgate.errors import ClientApiError

from .client_auth_mixin import ClientAuthMixin
from .client_context_mixin import ClientContextMixin
from .client_core_mixin import ClientCoreMixin
from .client_report_mixin import ClientReportMixin
from .client_scan_mixin import ClientScanMixin
from .responses import ApiResponse, decode_response, is_error_payload

logger = logging.getLogger(__name__)

API_KEY = "ZAPROXY-PLUGIN"

CATEGORIES = ("view", "action")


def _encode_params(params: Mapping[str, Any] | None) -> dict[str, str]:
    encoded: dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded


class ZapClient(ClientCoreMixin, ClientContextMixin, ClientAuthMixin, ClientScanMixin, ClientReportMixin):
    """
    Talks to a running scanner over HTTP.

    Every named wrapper funnels into ``call`` (JSON views and actions) or
    ``other`` (raw report bytes).
    """

    def __init__(self, host: str, port: int, api_key: str = API_KEY, timeout: float = 60.0):
        self.base_url = f"http://{host}:{port}"
        self.api_key = api_key
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"X-ZAP-API-Key": api_key},
        )

    async def __aenter__(self) -> "ZapClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, params: Mapping[str, Any] | None) -> httpx.Response:
        query = _encode_params(params)
        query["apikey"] = self.api_key
        try:
            return await self.client.get(path, params=query)
        except httpx.HTTPError as exc:
            raise ClientApiError(f"{path}: {exc}", code="connection_error") from exc

    async def call(
        self,
        component: str,
        category: str,
        method: str,
        params: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        """Invoke ``/JSON/<component>/<category>/<method>/`` and decode the reply."""
        if category not in CATEGORIES:
            raise ValueError(f"category must be one of {CATEGORIES}, got {category!r}")
        path = f"/JSON/{component}/{category}/{method}/"
        response = await self._get(path, params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ClientApiError(
                f"{path}: non-JSON reply (HTTP {response.status_code})", code="bad_response"
            ) from exc

        if response.status_code != 200 and not is_error_payload(payload):
            raise ClientApiError(f"{path}: HTTP {response.status_code}", code=str(response.status_code))
        logger.debug("%s -> %s", path, payload)
        return decode_response(payload)

    async def other(self, component: str, method: str, params: Mapping[str, Any] | None = None) -> bytes:
        """Invoke ``/OTHER/<component>/other/<method>/`` and return the body."""
        path = f"/OTHER/{component}/other/{method}/"
        response = await self._get(path, params)
        if response.status_code != 200:
            detail = response.text[:200]
            raise ClientApiError(f"{path}: HTTP {response.status_code} {detail}", code=str(response.status_code))
        return response.content
