"""
Async CoinGecko HTTP client used by the market data gateway.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from shared.errors import FetchFailedError
from shared.logging import get_logger


DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
API_KEY_HEADER = "x-cg-demo-api-key"


class CoinGeckoClient:
    """Lightweight async client for CoinGecko's public REST interface.

    The client performs exactly one GET per call. It neither caches nor
    retries; both are the gateway's (respectively the caller's) concern.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.logger = get_logger("gateway.coingecko")
        headers = {"Accept": "application/json"}
        if api_key:
            headers[API_KEY_HEADER] = api_key
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def get_json(self, operation: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Issue a GET against ``path`` and return the decoded JSON body.

        Raises FetchFailedError for transport failures, non-success statuses
        and undecodable bodies. The provider status code is attached whenever
        a response was received.
        """
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as exc:
            self.logger.error("Provider request failed", operation=operation, path=path, error=str(exc))
            raise FetchFailedError(operation, message=str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            self.logger.error(
                "Provider returned unexpected status",
                operation=operation,
                path=path,
                status_code=response.status_code,
                response=response.text[:500],
            )
            raise FetchFailedError(
                operation,
                message=f"HTTP error status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            self.logger.error("Provider returned invalid JSON", operation=operation, path=path)
            raise FetchFailedError(
                operation,
                message="invalid JSON in provider response",
                status_code=response.status_code,
            ) from exc

    async def ping(self) -> bool:
        """Return True when the provider's ping endpoint responds successfully."""
        try:
            await self.get_json("ping", "/ping")
            return True
        except FetchFailedError:
            return False
