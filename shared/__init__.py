"""
Shared utilities for the media catalog cache layer.

This package aggregates common building blocks consumed by the cache core
and its diagnostics service:

- config: Settings via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service scaffolding

Do not import from service_* packages into shared/.
"""
