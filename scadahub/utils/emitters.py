"""
WebSocket Emitters
=====================================

Purpose:
    Broadcast channel for controller telemetry, leveraging the Socket.IO server.

Features:
- Fire-and-forget broadcast of pre-serialized messages to every subscriber.
- Explicit event namespace management.
- Send failures are logged and swallowed; they never reach the scheduler.

Usage:
    Instantiate EmitterService with the SocketIO instance and call
    broadcast(text) for each message. Delivery to individual clients is
    queued per connection by python-socketio, so one slow or broken
    subscriber does not hold up the others.
"""

import logging
from typing import Iterable

from flask_socketio import SocketIO

from scadahub.enums.events import WebSocketEvent

logger = logging.getLogger("emitters")

# Socket.IO Namespace Constants
SOCKETIO_NAMESPACE_TELEMETRY = "/"

WS_EVENT_TELEMETRY = WebSocketEvent.CONTROLLER_TELEMETRY.value


class EmitterService:
    """
    Centralized WebSocket Emitter Service.

    Attributes:
        sio: The Socket.IO SocketIO instance for emitting events.
        event: Event name used for telemetry broadcasts.
        namespace: Namespace subscribers connect to.
    """

    def __init__(
        self,
        sio: SocketIO,
        event: str = WS_EVENT_TELEMETRY,
        namespace: str = SOCKETIO_NAMESPACE_TELEMETRY,
    ):
        self.sio = sio
        self.event = event
        self.namespace = namespace
        self.sent_count = 0
        self.failed_count = 0

    def emit(
        self,
        event: str,
        payload,
        room: str | None = None,
        namespace: str = "/",
    ) -> bool:
        """
        Emit a Socket.IO event.

        Args:
            event (str): Event name.
            payload: JSON serializable data or pre-serialized text.
            room (Optional[str]): Socket.IO room identifier. Broadcasts if None.
            namespace (str): Socket.IO namespace to emit under (default "/").

        Returns:
            bool: False if the send failed (the failure is logged, not raised).
        """
        try:
            self.sio.emit(event, payload, to=room, namespace=namespace)
            self.sent_count += 1
            return True
        except Exception as e:
            self.failed_count += 1
            logger.warning(f"[Emitter] Failed to emit event '{event}' to room '{room or 'broadcast'}': {e}")
            return False

    def broadcast(self, text: str) -> bool:
        """Send one pre-serialized telemetry message to every connected subscriber."""
        return self.emit(self.event, text, namespace=self.namespace)

    def broadcast_many(self, messages: Iterable[str]) -> int:
        """
        Broadcast messages in order; a failed message does not stop the rest.

        Returns:
            int: number of messages that were handed to the transport
        """
        delivered = 0
        for text in messages:
            if self.broadcast(text):
                delivered += 1
        return delivered
