"""
Shared utilities for the Design Gateway.

This package aggregates common building blocks consumed by the gateway:

- config: Gateway configuration via pydantic-settings
- logging: Structured logging with file/operation correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Throttle retry policy and cancellable sleeps

Any cross-cutting logic should live here to avoid import cycles across
service packages. Do not import from service packages into shared/.
"""
