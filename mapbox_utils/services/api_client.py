"""HTTP adapter for Uploads API calls."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..errors import RemoteServiceError

logger = logging.getLogger(__name__)


class HTTPAPIClient:
    """
    HTTP client adapter for API calls.

    Implements IAPIClient protocol. Each call is made exactly once; an
    unexpected status, a transport error or a non-JSON body raises
    RemoteServiceError.
    """

    def __init__(self, base_url: str, timeout: float = 60, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def post(
        self,
        endpoint: str,
        expected_status: int,
        json: Optional[Dict] = None,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return await self._request("POST", endpoint, expected_status, json=json, params=params, headers=headers)

    async def get(
        self,
        endpoint: str,
        expected_status: int,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        return await self._request("GET", endpoint, expected_status, params=params, headers=headers)

    async def _request(
        self,
        method: str,
        endpoint: str,
        expected_status: int,
        json: Optional[Dict] = None,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        if not self._client:
            raise RuntimeError("HTTPAPIClient not initialized. Use 'async with' context.")

        logger.debug("%s %s", method, endpoint)
        try:
            response = await self._client.request(method, endpoint, json=json, params=params, headers=headers)
        except httpx.RequestError as exc:
            raise RemoteServiceError(f"Request {method} {endpoint} failed: {exc}") from exc

        if response.status_code != expected_status:
            raise RemoteServiceError(
                f"API error {response.status_code} on {method} {endpoint}: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise RemoteServiceError(
                f"API returned a non-JSON body on {method} {endpoint}.",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            ) from exc
