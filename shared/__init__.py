"""
Shared utilities for the auth callback service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding
- test_helpers: Stub identity provider for tests

Do not import from service packages into shared/.
"""
