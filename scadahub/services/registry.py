"""
Controller registry.

Single owner of every ControllerState in the process. All reads hand out
copies and all writes are applied to a working copy that is committed under
the registry lock, so no caller can observe a half-written controller
(e.g. a new temperature paired with an old level).

The set of names is fixed at construction: nothing is added or removed at
runtime.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from scadahub.domain.controller import ControllerState
from scadahub.domain.exceptions import NotFoundError, ServiceError

logger = logging.getLogger(__name__)

Snapshot = List[Tuple[str, ControllerState]]


class ControllerRegistry:
    """
    Thread-safe mapping of controller name -> ControllerState.

    A single re-entrant lock guards the whole map. Critical sections only
    copy or swap small dataclasses; persistence and broadcasts are performed
    by callers on the copies they get back, outside the lock.
    """

    def __init__(self, states: Optional[Mapping[str, ControllerState]] = None):
        self._lock = threading.RLock()
        self._states: Dict[str, ControllerState] = {}
        for name, state in (states or {}).items():
            if not isinstance(name, str) or not name:
                raise ValueError(f"Controller name must be a non-empty string, got {name!r}")
            self._states[name] = state.copy()
        logger.info("ControllerRegistry initialized with %d controller(s)", len(self._states))

    @classmethod
    def with_defaults(cls, names: Iterable[str]) -> "ControllerRegistry":
        """Create a registry holding fresh states for the given names."""
        return cls({name: ControllerState() for name in names})

    # ==================== Reads ====================

    def get(self, name: str) -> Optional[ControllerState]:
        """Return a copy of the controller's state, or None if unknown."""
        with self._lock:
            state = self._states.get(name)
            return state.copy() if state is not None else None

    def snapshot(self) -> Snapshot:
        """Consistent point-in-time copy of the registry, sorted by name."""
        with self._lock:
            return [(name, self._states[name].copy()) for name in sorted(self._states)]

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._states)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    # ==================== Writes ====================

    def set(self, name: str, mutator: Callable[[ControllerState], None]) -> ControllerState:
        """
        Apply ``mutator`` to one controller atomically.

        Args:
            name: Controller name
            mutator: Callable receiving a working copy to modify in place

        Returns:
            Copy of the committed state

        Raises:
            NotFoundError: if the controller does not exist (nothing is changed)
        """
        with self._lock:
            current = self._states.get(name)
            if current is None:
                raise NotFoundError("controller not found", detail={"controller": name})
            working = current.copy()
            mutator(working)
            self._states[name] = working
            return working.copy()

    def transform(
        self,
        fn: Callable[[Dict[str, ControllerState]], Mapping[str, ControllerState]],
    ) -> Snapshot:
        """
        Replace every controller's state in one atomic step.

        ``fn`` receives copies of all states and returns the new mapping; it
        must keep exactly the same names. Readers see either the states from
        before the call or the ones after it, never a mix.

        Returns:
            Snapshot of the committed states
        """
        with self._lock:
            current = {name: state.copy() for name, state in self._states.items()}
            updated = fn(current)
            if set(updated) != set(self._states):
                raise ServiceError(
                    "Registry transform must not add or remove controllers",
                    detail={"expected": sorted(self._states), "got": sorted(updated)},
                )
            self._states = {name: state.copy() for name, state in updated.items()}
            return self.snapshot()
