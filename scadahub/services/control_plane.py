"""
Control-plane service.

Request handlers behind ``/all``, ``/controller/set`` and ``/controller/state``.
They only talk to the injected registry and store, so tests can pass fakes.
Every accepted mutation is followed by a persistence write of the full
registry; the write happens after the registry commit and never under the
registry lock.
"""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

from scadahub.domain.controller import ControllerState
from scadahub.domain.exceptions import NotFoundError, TransientIOError
from scadahub.enums.events import AuditAction, AuditOutcome
from scadahub.schemas.controller import serialize_controllers
from scadahub.services.registry import ControllerRegistry

if TYPE_CHECKING:
    from infrastructure.logging.audit import AuditLogger
    from infrastructure.persistence.controller_store import JsonControllerStore

logger = logging.getLogger(__name__)


class ControlPlaneService:
    """Read and mutate controllers on behalf of control-plane callers."""

    def __init__(
        self,
        registry: ControllerRegistry,
        store: "JsonControllerStore",
        audit_logger: Optional["AuditLogger"] = None,
    ):
        self.registry = registry
        self.store = store
        self.audit_logger = audit_logger
        # Serializes snapshot+save so the newest snapshot is the last one written
        self._persist_lock = threading.Lock()

    # ==================== Queries ====================

    def list_all(self) -> str:
        """Full registry as JSON text, numbers rounded to 2 decimals."""
        return serialize_controllers(self.registry.snapshot())

    # ==================== Commands ====================

    def set_values(
        self,
        controller_id: Optional[str],
        temperature: float = 0.0,
        level: float = 0.0,
        *,
        actor: str = "unknown",
    ) -> ControllerState:
        """
        Overwrite temperature and level of one controller.

        Raises:
            NotFoundError: unknown controller (nothing changed, nothing written)
        """

        def _apply(state: ControllerState) -> None:
            state.temperature = float(temperature)
            state.level = float(level)

        updated = self._mutate(
            controller_id,
            _apply,
            action=AuditAction.SET_VALUES,
            actor=actor,
            temperature=temperature,
            level=level,
        )
        logger.info(
            "Controller '%s' set to temperature=%.2f level=%.2f", controller_id, updated.temperature, updated.level
        )
        return updated

    def set_enabled(
        self,
        controller_id: Optional[str],
        enable: bool = False,
        *,
        actor: str = "unknown",
    ) -> ControllerState:
        """
        Overwrite the enabled flag of one controller.

        Raises:
            NotFoundError: unknown controller (nothing changed, nothing written)
        """

        def _apply(state: ControllerState) -> None:
            state.enabled = bool(enable)

        updated = self._mutate(controller_id, _apply, action=AuditAction.SET_ENABLED, actor=actor, enable=enable)
        logger.info("Controller '%s' %s", controller_id, "enabled" if updated.enabled else "disabled")
        return updated

    def persist(self) -> bool:
        """
        Save the current registry.

        Failures are logged and reported through the return value only.
        """
        with self._persist_lock:
            snapshot = self.registry.snapshot()
            try:
                self.store.save(snapshot)
                return True
            except TransientIOError as e:
                logger.warning("Controller state not persisted: %s", e)
                return False

    # ==================== Internal ====================

    def _mutate(self, controller_id, mutator, *, action: AuditAction, actor: str, **params) -> ControllerState:
        if controller_id is None:
            self._audit(actor, action, "<missing>", AuditOutcome.NOT_FOUND, **params)
            raise NotFoundError("controller not found")
        try:
            updated = self.registry.set(controller_id, mutator)
        except NotFoundError:
            self._audit(actor, action, controller_id, AuditOutcome.NOT_FOUND, **params)
            raise

        self.persist()
        self._audit(actor, action, controller_id, AuditOutcome.SUCCESS, **params)
        return updated

    def _audit(self, actor: str, action: AuditAction, resource: str, outcome: AuditOutcome, **params) -> None:
        if self.audit_logger is None:
            return
        try:
            self.audit_logger.log_event(actor, action.value, resource, outcome.value, **params)
        except Exception as e:
            logger.warning("Audit log write failed: %s", e)
