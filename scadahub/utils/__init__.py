"""Shared helpers: HTTP responses and the telemetry broadcast channel."""
