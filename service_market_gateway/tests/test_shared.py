"""
Tests for shared configuration, errors and logging helpers.
"""

from pathlib import Path

from shared.config import get_config
from shared.errors import ErrorResponse, FetchFailedError, InvalidArgumentError, NotFoundError
from shared.logging import clear_context, set_request_id


def test_config_defaults(monkeypatch):
    for name in ("CRYPTOFOLIO_CACHE_TTL_SECONDS", "CRYPTOFOLIO_MIN_REQUEST_INTERVAL_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    config = get_config()

    assert config.service_name == "market-gateway"
    assert config.cache_ttl_seconds == 300
    assert config.min_request_interval_seconds == 1.0
    assert config.coingecko_base_url == "https://api.coingecko.com/api/v3"
    assert config.vs_currency == "usd"


def test_config_reads_prefixed_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("CRYPTOFOLIO_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("CRYPTOFOLIO_VS_CURRENCY", "eur")
    monkeypatch.setenv("CRYPTOFOLIO_HOLDINGS_FILE", str(tmp_path / "h.json"))

    config = get_config()

    assert config.cache_ttl_seconds == 60
    assert config.vs_currency == "eur"
    assert config.holdings_file == Path(tmp_path / "h.json")


def test_fetch_failed_carries_operation_and_status():
    error = FetchFailedError("coin", "HTTP error status 500", status_code=500)

    assert error.code == "FETCH_FAILED"
    assert str(error) == "coin: HTTP error status 500"
    assert error.details == {"operation": "coin", "status_code": 500}


def test_error_response_includes_request_id():
    request_id = set_request_id("req-1")
    try:
        response = NotFoundError("coin", "nonexistent-coin").to_response()
    finally:
        clear_context()

    assert isinstance(response, ErrorResponse)
    assert response.request_id == request_id
    assert response.code == "NOT_FOUND"
    assert response.details["resource"] == "nonexistent-coin"


def test_invalid_argument_defaults():
    error = InvalidArgumentError()

    assert error.code == "INVALID_ARGUMENT"
    assert error.to_response().request_id is None
