"""
Schemas Module
==============

This module provides Pydantic models for request/response validation.
Schemas ensure data integrity and provide automatic validation.
"""

from scadahub.schemas.controller import (
    ControllerStatePayload,
    ControllerTelemetryPayload,
    SetEnabledRequest,
    SetValuesRequest,
    serialize_controllers,
    serialize_telemetry,
)

__all__ = [
    "ControllerStatePayload",
    "ControllerTelemetryPayload",
    "SetEnabledRequest",
    "SetValuesRequest",
    "serialize_controllers",
    "serialize_telemetry",
]
