"""HTTP transport backed by httpx."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import structlog

from txclient.transactions.clients.base import BaseTransport, TransportResponse
from txclient.transactions.errors import TransportError

logger = structlog.get_logger()


class HttpxTransport(BaseTransport):
    """Transport sending JSON requests with an httpx.AsyncClient."""

    def __init__(
        self,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            timeout: Request timeout in seconds (ignored when client is given)
            client: Preconfigured client; the transport does not close it
        """
        super().__init__(timeout)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def get_name(self) -> str:
        return "http"

    async def post_json(self, url: str, payload: Dict[str, Any]) -> TransportResponse:
        try:
            response = await self._client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.debug("http.request_error", method="POST", url=url, error=str(e))
            raise TransportError(url, f"{type(e).__name__}: {e}") from e
        return self._wrap(response)

    async def get_json(self, url: str) -> TransportResponse:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.debug("http.request_error", method="GET", url=url, error=str(e))
            raise TransportError(url, f"{type(e).__name__}: {e}") from e
        return self._wrap(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def _wrap(response: httpx.Response) -> TransportResponse:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = None
        return TransportResponse(
            status_code=response.status_code, body=payload, text=response.text
        )
