from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Generic user-facing messages: never leak internals
# ---------------------------------------------------------------------------
_GENERIC_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    404: "Resource not found",
    405: "Method Not Allowed",
    413: "Request payload too large",
    500: "An internal error occurred",
    503: "Service temporarily unavailable",
}


def safe_error(
    exc: BaseException,
    status: int = 500,
    *,
    context: str = "",
) -> Response:
    """Return a generic error response while logging the real exception.

    Parameters
    ----------
    exc:
        The caught exception: logged server-side, **never** sent to the
        client.
    status:
        HTTP status code for the response (determines the generic message).
    context:
        Optional human-readable context string logged alongside *exc*.
    """
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    message = _GENERIC_MESSAGES.get(status, _GENERIC_MESSAGES[500])
    return error_response(message, status)


def success_response(status: int = 200) -> Response:
    response = jsonify({"status": "ok"})
    response.status_code = status
    return response


def error_response(message: str, status: int = 500) -> Response:
    response = jsonify({"error": message})
    response.status_code = status
    return response


def json_text_response(text: str, status: int = 200) -> Response:
    """Send a body that is already serialized JSON."""
    return Response(text, status=status, mimetype="application/json")


# ---------------------------------------------------------------------------
# Route decorator: eliminates per-route try/except boilerplate
# ---------------------------------------------------------------------------


def safe_route(
    error_message: str = "An internal error occurred",
    *,
    error_status: int = 500,
) -> Callable:
    """Decorator that wraps a Flask route handler with standardized error handling.

    Catches :class:`~scadahub.domain.exceptions.ScadaHubError` subclasses and
    maps them to the correct HTTP status via ``exc.http_status``. Any other
    ``Exception`` is logged and returns a generic 500.

    Usage::

        @controllers_api.post("/controller/set")
        @safe_route("Failed to set controller values")
        def set_controller_values():
            ...
    """
    from scadahub.domain.exceptions import ScadaHubError

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except ScadaHubError as exc:
                status = exc.http_status
                if status >= 500:
                    return safe_error(exc, status, context=error_message)
                return error_response(str(exc) or error_message, status)
            except Exception as exc:
                return safe_error(exc, error_status, context=error_message)

        return wrapper

    return decorator
