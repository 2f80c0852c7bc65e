"""Centralized exception hierarchy for SCADA Hub.

All domain and service exceptions inherit from :class:`ScadaHubError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``scadahub/utils/http.safe_route``) maps
these to the correct HTTP status codes automatically.

Hierarchy
---------
::

    ScadaHubError (base: maps to 500)
    ├── ValidationError          (400: unparsable field from caller)
    ├── NotFoundError            (404: controller does not exist)
    ├── ServiceError             (500: business-logic failure)
    │   └── TransientIOError     (503: recoverable I/O, logged and ignored)
    │       └── PersistenceError (state file read/write)
    └── ConfigurationError       (500: missing / invalid config)
"""

from __future__ import annotations


class ScadaHubError(Exception):
    """Base exception for all SCADA Hub application errors.

    Parameters
    ----------
    message:
        Human-readable description. For 4xx errors it is returned to the
        caller as-is; 5xx messages stay in the server log.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(ScadaHubError):
    """Caller supplied a value that cannot be coerced (HTTP 400)."""

    http_status: int = 400


class NotFoundError(ScadaHubError):
    """Requested controller does not exist (HTTP 404)."""

    http_status: int = 404


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(ScadaHubError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class TransientIOError(ServiceError):
    """Recoverable I/O failure; callers log it and carry on (HTTP 503)."""

    http_status: int = 503


class PersistenceError(TransientIOError):
    """The controller state file could not be read or written."""


class ConfigurationError(ScadaHubError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
