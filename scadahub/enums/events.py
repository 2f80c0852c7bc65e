from enum import Enum


class WebSocketEvent(str, Enum):
    """WebSocket event names for real-time communication."""

    # Per-controller telemetry pushed on every simulation tick
    CONTROLLER_TELEMETRY = "telemetry"


class AuditAction(str, Enum):
    """Control-plane actions recorded in the audit log."""

    SET_VALUES = "controller.set_values"
    SET_ENABLED = "controller.set_enabled"


class AuditOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
