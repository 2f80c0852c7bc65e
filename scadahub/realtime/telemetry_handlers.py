"""scadahub.realtime.telemetry_handlers

Socket.IO lifecycle handlers for telemetry subscribers.

Subscribers only listen: telemetry is pushed by the simulation tick through
EmitterService. These handlers log connections, disconnections and any
inbound message, which is otherwise ignored.
"""

import logging

from flask import request

from scadahub.extensions import socketio

logger = logging.getLogger(__name__)


def handle_telemetry_connect(auth=None):
    logger.info("Subscriber connected: %s (%s)", request.sid, request.remote_addr)


def handle_telemetry_disconnect(*_args):
    logger.info("Subscriber disconnected: %s", request.sid)


def handle_telemetry_message(data):
    logger.info("Message from subscriber %s: %s", request.sid, data)


def register(namespace: str) -> None:
    """Attach the handlers to ``namespace`` on the shared SocketIO instance."""
    socketio.on_event("connect", handle_telemetry_connect, namespace=namespace)
    socketio.on_event("disconnect", handle_telemetry_disconnect, namespace=namespace)
    socketio.on_event("message", handle_telemetry_message, namespace=namespace)
