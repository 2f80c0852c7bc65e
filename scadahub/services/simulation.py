"""
Telemetry simulation.

``advance_states`` is the update rule: a pure function from the current
registry contents to the next ones. ``TelemetrySimulationService`` wires it
to the registry and the broadcast channel; the recurring trigger lives in
``scadahub.workers.unified_scheduler``.
"""
from __future__ import annotations

import logging
import random
from typing import Dict, List, Mapping, Tuple

from scadahub.domain.controller import ControllerState
from scadahub.schemas.controller import serialize_telemetry
from scadahub.services.registry import ControllerRegistry
from scadahub.utils.emitters import EmitterService

logger = logging.getLogger(__name__)

TEMPERATURE_BASE = 20.0
TEMPERATURE_SPAN = 10.0
LEVEL_SPAN = 100.0

TICK_TASK_NAME = "telemetry.tick"


def advance_states(states: Mapping[str, ControllerState], rng: random.Random) -> Dict[str, ControllerState]:
    """
    Assign fresh simulated readings to every enabled controller.

    Enabled: ``temperature`` in [20, 30), ``level`` in [0, 100).
    Disabled controllers are returned unchanged. Input states are not modified.
    """
    updated: Dict[str, ControllerState] = {}
    for name in sorted(states):
        state = states[name].copy()
        if state.enabled:
            state.temperature = TEMPERATURE_BASE + rng.random() * TEMPERATURE_SPAN
            state.level = rng.random() * LEVEL_SPAN
        updated[name] = state
    return updated


def telemetry_messages(snapshot: List[Tuple[str, ControllerState]]) -> List[str]:
    """One serialized broadcast message per controller, in snapshot order."""
    return [serialize_telemetry(name, state) for name, state in snapshot]


class TelemetrySimulationService:
    """
    Runs one simulation tick: update the registry, then broadcast.

    The random source belongs to this service and is not shared.
    """

    def __init__(
        self,
        registry: ControllerRegistry,
        emitter: EmitterService,
        rng: random.Random | None = None,
    ):
        self.registry = registry
        self.emitter = emitter
        self._rng = rng or random.Random()
        self.tick_count = 0

    def run_tick(self) -> int:
        """
        Execute one tick.

        The registry update is committed atomically before anything is sent,
        and broadcasting works on the committed copy, outside the registry lock.

        Returns:
            int: number of messages handed to the broadcast channel
        """
        snapshot = self.registry.transform(lambda states: advance_states(states, self._rng))
        self.tick_count += 1

        messages = telemetry_messages(snapshot)
        delivered = self.emitter.broadcast_many(messages)
        if delivered < len(messages):
            logger.warning(
                "Tick %d: %d of %d telemetry message(s) failed to send",
                self.tick_count,
                len(messages) - delivered,
                len(messages),
            )
        else:
            logger.debug("Tick %d: broadcast %d controller(s)", self.tick_count, delivered)
        return delivered
