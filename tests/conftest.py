"""
Shared test fixtures for the SCADA Hub test suite.

Provides:
- Controller registries seeded with a known set of names
- Fakes for the Socket.IO server, the controller store and the audit log
- A Flask app wired to a temporary state file, plus its test client

Usage:
    def test_example(registry, fake_store):
        service = ControlPlaneService(registry, fake_store)
        service.set_values("ctrl1", 42.5, 77.0)
        assert fake_store.saves
"""

from __future__ import annotations

import logging
from typing import Any

import pytest

from scadahub.domain.controller import ControllerState
from scadahub.domain.exceptions import PersistenceError
from scadahub.services.registry import ControllerRegistry
from scadahub.utils.emitters import EmitterService

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("scadahub").setLevel(logging.WARNING)

CONTROLLER_NAMES = ["ctrl1", "ctrl2", "ctrl3"]


# ============================== Fakes ======================================


class FakeSocketIO:
    """Records emits; payloads containing any ``fail_on`` marker raise."""

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.emits: list[dict] = []
        self.fail_on = fail_on

    def emit(self, event, payload, to=None, namespace="/", **_kwargs):
        if any(marker in str(payload) for marker in self.fail_on):
            raise ConnectionError("subscriber went away")
        self.emits.append(
            {
                "event": event,
                "payload": payload,
                "room": to,
                "namespace": namespace,
            }
        )


class InMemoryStore:
    """Controller store double that keeps every saved snapshot."""

    path = None

    def __init__(self, initial: dict[str, ControllerState] | None = None, fail: bool = False) -> None:
        self.initial = dict(initial or {})
        self.fail = fail
        self.saves: list[list[tuple[str, ControllerState]]] = []

    def load(self) -> dict[str, ControllerState]:
        return {name: state.copy() for name, state in self.initial.items()}

    def save(self, snapshot) -> None:
        if self.fail:
            raise PersistenceError("disk full")
        self.saves.append(list(snapshot))


class RecordingAuditLogger:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def log_event(self, actor, action, resource, outcome, **metadata) -> None:
        self.events.append(
            {"actor": actor, "action": action, "resource": resource, "outcome": outcome, "meta": metadata}
        )


# ========================== Service Fixtures ===============================


@pytest.fixture()
def registry():
    """Registry holding ctrl1..ctrl3 at 0.0 / 0.0 / enabled."""
    return ControllerRegistry.with_defaults(CONTROLLER_NAMES)


@pytest.fixture()
def fake_sio():
    return FakeSocketIO()


@pytest.fixture()
def emitter(fake_sio):
    return EmitterService(fake_sio)


@pytest.fixture()
def fake_store():
    return InMemoryStore()


@pytest.fixture()
def audit_logger():
    return RecordingAuditLogger()


# ============================ App Fixtures =================================


@pytest.fixture()
def state_file(tmp_path):
    return tmp_path / "controllers.json"


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def container(app):
    return app.config["CONTAINER"]


@pytest.fixture()
def app_factory(state_file):
    """Build extra apps on the shared state file; all are shut down afterwards."""
    from scadahub import create_app

    built = []

    def _build(**overrides):
        config = {
            "state_file": str(state_file),
            "log_file": "",
            "audit_log_path": "",
            "default_controllers": list(CONTROLLER_NAMES),
        }
        config.update(overrides)
        flask_app = create_app(config)
        flask_app.config["TESTING"] = True
        built.append(flask_app)
        return flask_app

    yield _build
    for flask_app in built:
        flask_app.config["CONTAINER"].shutdown()


@pytest.fixture()
def app(app_factory):
    """Flask app with persistence on a temp file; the scheduler is not started."""
    return app_factory()
