"""
Shared utilities for worker-manager.

This package aggregates common building blocks consumed by both components:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- envelope: The uniform {success, result, error, errors} response shape

Do not import from service_* packages into shared/.
"""
