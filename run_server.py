"""Entry point for the SCADA Hub server.

Serves the REST control plane and the Socket.IO telemetry channel on one
port and starts the simulation scheduler. Configuration comes from
``SCADAHUB_*`` environment variables (see ``scadahub/config.py``).
"""
from __future__ import annotations

import logging
import sys

from scadahub import create_app, socketio
from scadahub.domain.exceptions import ConfigurationError


def main() -> int:
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")

    try:
        app = create_app(bootstrap_runtime=True)
    except ConfigurationError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 2

    container = app.config["CONTAINER"]
    host = container.config.host
    port = container.config.port

    logging.info("Starting server on %s:%s", host, port)
    logging.info("SocketIO async_mode: %s", socketio.async_mode)

    try:
        socketio.run(
            app,
            host=host,
            port=port,
            debug=False,
            use_reloader=False,
            allow_unsafe_werkzeug=True,
        )
        logging.info("Server stopped.")
        return 0
    except KeyboardInterrupt:
        logging.info("Server stopped by user.")
        return 0
    except Exception as exc:  # pragma: no cover - top-level runtime errors
        logging.exception("ERROR: Failed to start server: %s", exc)
        return 1
    finally:
        container.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
