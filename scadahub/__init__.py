from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading
from typing import Any

from flask import Flask
from werkzeug.exceptions import HTTPException

from scadahub.blueprints.api import controllers_api
from scadahub.blueprints.status import status_bp
from scadahub.config import load_config, setup_logging
from scadahub.extensions import init_extensions, socketio
from scadahub.realtime import register_handlers


def create_app(config_overrides: dict[str, Any] | None = None, *, bootstrap_runtime: bool = False) -> Flask:
    """
    Build the Flask application and its services.

    Args:
        config_overrides: AppConfig attribute overrides (matched as given, then lower-cased)
        bootstrap_runtime: start the telemetry scheduler immediately
    """
    config = load_config()
    if config_overrides:
        for key, value in config_overrides.items():
            attr = key if hasattr(config, key) else key.lower()
            setattr(config, attr, value)
        config.validate()

    # Configure logging early so store loading and scheduler startup are visible
    setup_logging(debug=config.DEBUG, log_level=config.log_level, log_file=config.log_file or None)

    flask_app = Flask(__name__)
    flask_app.config.update(config.as_flask_config())
    flask_app.json.sort_keys = False

    # Initialize Socket.IO BEFORE building ServiceContainer (EmitterService needs it)
    init_extensions(flask_app, config.socketio_cors_origins)

    from scadahub.services.container import ServiceContainer

    container = ServiceContainer.build(config, socketio, start_runtime=bootstrap_runtime)
    flask_app.config["CONTAINER"] = container

    # ── Graceful shutdown handlers ──────────────────────────────────
    _shutdown_lock = threading.Lock()
    _shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> None:
        nonlocal _shutdown_done
        with _shutdown_lock:
            if _shutdown_done:
                return
            _shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.warning("Error during graceful shutdown: %s", exc)

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s, shutting down", sig_name)
        _graceful_shutdown(sig_name)
        raise SystemExit(0)

    if bootstrap_runtime:
        atexit.register(_graceful_shutdown, "atexit")

        # Signal handlers can only be installed from the main thread
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(OSError, ValueError):
                signal.signal(sig, _signal_handler)

    # Global JSON error handler: routing errors (404, 405, 413) and anything
    # that escaped safe_route become {"error": ...} without stack traces.
    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        from scadahub.domain.exceptions import ScadaHubError
        from scadahub.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            if status == 405:
                response = error_response("Method Not Allowed", 405)
                if getattr(exc, "valid_methods", None):
                    response.headers["Allow"] = ", ".join(exc.valid_methods)
                return response
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, ScadaHubError):
            status = exc.http_status
            if status >= 500:
                return safe_error(exc, status, context=type(exc).__name__)
            return error_response(str(exc) or "Request failed", status)

        return safe_error(exc, 500, context="unhandled")

    flask_app.register_blueprint(controllers_api)
    flask_app.register_blueprint(status_bp)

    # Register Socket.IO event handlers (must be after socketio init)
    register_handlers(config.telemetry_namespace)

    for bp_name in flask_app.blueprints:
        logging.info(f" Registered blueprint: {bp_name}")

    if not bootstrap_runtime:
        logging.info("Telemetry scheduler not started (bootstrap_runtime=False)")

    logging.getLogger(__name__).info(
        "SCADA Hub initialized with %d controller(s)", len(container.registry)
    )
    return flask_app


__all__ = ["create_app", "socketio"]
