"""
Shared utilities for the Lead Scoring engine.

This package aggregates common building blocks consumed by the scoring
service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request/job correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- result: Success/failure values returned by service operations

Do not import from service_* packages into shared/.
"""
