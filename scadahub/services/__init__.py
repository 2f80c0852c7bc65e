"""
Services package: registry, simulation, control plane and the container
that wires them together.
"""

from scadahub.services.control_plane import ControlPlaneService
from scadahub.services.registry import ControllerRegistry
from scadahub.services.simulation import TelemetrySimulationService, advance_states

__all__ = [
    "ControlPlaneService",
    "ControllerRegistry",
    "TelemetrySimulationService",
    "advance_states",
]
