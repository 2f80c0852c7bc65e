"""
Socket.IO Event Handlers
========================

Namespace handlers for the real-time telemetry channel.

Usage:
    Call after socketio.init_app():

    from scadahub.realtime import register_handlers
    register_handlers("/")
"""

import logging

logger = logging.getLogger(__name__)


def register_handlers(namespace: str = "/") -> None:
    """Register the telemetry subscriber handlers on ``namespace``."""
    from . import telemetry_handlers

    telemetry_handlers.register(namespace)
    logger.info("Socket.IO handlers registered (telemetry namespace %s)", namespace)
