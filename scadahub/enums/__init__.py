"""
Enums Module
============

Enumeration types shared across the SCADA Hub application.
"""

from scadahub.enums.events import AuditAction, AuditOutcome, WebSocketEvent

__all__ = ["AuditAction", "AuditOutcome", "WebSocketEvent"]
