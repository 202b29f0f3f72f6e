"""
Shared utilities for the Cryptofolio market data gateway.

This package aggregates common building blocks consumed by the gateway,
the portfolio layer and the command line tools:

- config: Gateway configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Do not import from service_* packages into shared/.
"""
