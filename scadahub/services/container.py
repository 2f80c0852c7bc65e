from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Optional, Union

from flask_socketio import SocketIO

from infrastructure.logging.audit import AuditLogger
from infrastructure.persistence.controller_store import JsonControllerStore, NullControllerStore
from scadahub.config import AppConfig
from scadahub.services.control_plane import ControlPlaneService
from scadahub.services.registry import ControllerRegistry
from scadahub.services.simulation import TICK_TASK_NAME, TelemetrySimulationService
from scadahub.utils.emitters import EmitterService
from scadahub.workers.unified_scheduler import UnifiedScheduler

logger = logging.getLogger(__name__)

ControllerStore = Union[JsonControllerStore, NullControllerStore]


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    store: ControllerStore
    registry: ControllerRegistry
    audit_logger: AuditLogger
    emitter: EmitterService
    simulation: TelemetrySimulationService
    control_plane: ControlPlaneService
    scheduler: UnifiedScheduler
    _shutdown_complete: bool = field(default=False, init=False, repr=False)

    @classmethod
    def build(
        cls,
        config: AppConfig,
        sio: SocketIO,
        *,
        start_runtime: bool = False,
        rng: Optional[random.Random] = None,
    ) -> "ServiceContainer":
        """
        Wire every service.

        The registry is seeded from the state file; if that yields nothing,
        the configured default controller names are used.
        """
        if config.persistence_enabled:
            store: ControllerStore = JsonControllerStore(config.state_file)
        else:
            logger.info("Persistence disabled; controller state lives in memory only")
            store = NullControllerStore()

        loaded = store.load()
        if loaded:
            registry = ControllerRegistry(loaded)
        else:
            logger.info("Seeding registry with default controllers: %s", ", ".join(config.default_controllers))
            registry = ControllerRegistry.with_defaults(config.default_controllers)

        audit_logger = AuditLogger(config.audit_log_path or None)
        emitter = EmitterService(sio, event=config.telemetry_event, namespace=config.telemetry_namespace)
        simulation = TelemetrySimulationService(registry, emitter, rng=rng)
        control_plane = ControlPlaneService(registry, store, audit_logger=audit_logger)

        scheduler = UnifiedScheduler(max_workers=config.scheduler_workers)
        scheduler.register_task(TICK_TASK_NAME, simulation.run_tick)

        container = cls(
            config=config,
            store=store,
            registry=registry,
            audit_logger=audit_logger,
            emitter=emitter,
            simulation=simulation,
            control_plane=control_plane,
            scheduler=scheduler,
        )
        if start_runtime:
            container.start()
        return container

    def start(self) -> None:
        """Schedule the telemetry tick (first run immediately) and start the scheduler."""
        if self.scheduler.get_job(TICK_TASK_NAME) is None:
            self.scheduler.schedule_interval(
                TICK_TASK_NAME,
                self.config.tick_interval_seconds,
                start_immediately=True,
            )
        self.scheduler.start()

    def shutdown(self) -> None:
        """Stop background work and write a final snapshot."""
        if self._shutdown_complete:
            return
        self._shutdown_complete = True
        self.scheduler.shutdown(wait=True)
        self.control_plane.persist()
        logger.info("ServiceContainer shut down")
