"""
Unit tests for the CoinGecko client adapter.
"""

import httpx
import pytest

from service_market_gateway.app.adapters.coingecko_client import API_KEY_HEADER, CoinGeckoClient
from shared.errors import FetchFailedError


def _client(handler, **kwargs) -> CoinGeckoClient:
    return CoinGeckoClient("https://api.coingecko.com/api/v3/", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_get_json_returns_decoded_body_and_sends_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json={"gecko_says": "(V3) To the Moon!"})

    client = _client(handler)
    try:
        body = await client.get_json("ping", "/ping", {"vs_currency": "usd"})
    finally:
        await client.close()

    assert body == {"gecko_says": "(V3) To the Moon!"}
    assert seen["url"].path == "/api/v3/ping"
    assert seen["url"].params["vs_currency"] == "usd"


@pytest.mark.asyncio
async def test_non_success_status_raises_fetch_failed_with_status():
    client = _client(lambda request: httpx.Response(500, text="boom"))
    try:
        with pytest.raises(FetchFailedError) as excinfo:
            await client.get_json("coin", "/coins/bitcoin")
    finally:
        await client.close()

    assert excinfo.value.status_code == 500
    assert excinfo.value.operation == "coin"
    assert excinfo.value.details == {"operation": "coin", "status_code": 500}


@pytest.mark.asyncio
async def test_rate_limited_status_is_a_fetch_failure():
    client = _client(lambda request: httpx.Response(429, json={"status": {"error_code": 429}}))
    try:
        with pytest.raises(FetchFailedError) as excinfo:
            await client.get_json("trending", "/search/trending")
    finally:
        await client.close()

    assert excinfo.value.status_code == 429


@pytest.mark.asyncio
async def test_transport_error_raises_fetch_failed_without_status():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection reset", request=request)

    client = _client(handler)
    try:
        with pytest.raises(FetchFailedError) as excinfo:
            await client.get_json("global_stats", "/global")
    finally:
        await client.close()

    assert excinfo.value.status_code is None
    assert "connection reset" in excinfo.value.message


@pytest.mark.asyncio
async def test_invalid_json_raises_fetch_failed():
    client = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    try:
        with pytest.raises(FetchFailedError):
            await client.get_json("search", "/search", {"query": "bit"})
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_api_key_header_is_sent_when_configured():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        return httpx.Response(200, json={})

    client = _client(handler, api_key="demo-key")
    try:
        await client.get_json("global_stats", "/global")
    finally:
        await client.close()

    assert seen["headers"][API_KEY_HEADER] == "demo-key"


@pytest.mark.asyncio
async def test_ping_reports_availability():
    healthy = _client(lambda request: httpx.Response(200, json={"gecko_says": "ok"}))
    broken = _client(lambda request: httpx.Response(503))
    try:
        assert await healthy.ping() is True
        assert await broken.ping() is False
    finally:
        await healthy.close()
        await broken.close()
