import threading

import pytest

from scadahub.domain.controller import ControllerState
from scadahub.domain.exceptions import NotFoundError, ServiceError
from scadahub.services.registry import ControllerRegistry


def test_snapshot_is_sorted_by_name():
    registry = ControllerRegistry.with_defaults(["pump", "boiler", "mixer"])

    assert [name for name, _ in registry.snapshot()] == ["boiler", "mixer", "pump"]
    assert registry.names() == ["boiler", "mixer", "pump"]


def test_get_returns_copy(registry):
    state = registry.get("ctrl1")
    state.temperature = 50.0

    assert registry.get("ctrl1").temperature == 0.0


def test_get_unknown_returns_none(registry):
    assert registry.get("ghost") is None
    assert "ghost" not in registry
    assert "ctrl1" in registry
    assert len(registry) == 3


def test_constructor_copies_input_states():
    seed = {"a": ControllerState(temperature=1.0)}
    registry = ControllerRegistry(seed)
    seed["a"].temperature = 2.0

    assert registry.get("a").temperature == 1.0


@pytest.mark.parametrize("bad_name", ["", None, 3])
def test_constructor_rejects_invalid_names(bad_name):
    with pytest.raises(ValueError):
        ControllerRegistry({bad_name: ControllerState()})


def test_set_commits_mutation(registry):
    def _apply(state):
        state.temperature = 42.5
        state.level = 77.0

    updated = registry.set("ctrl2", _apply)

    assert updated == ControllerState(temperature=42.5, level=77.0, enabled=True)
    assert registry.get("ctrl2") == updated


def test_set_unknown_raises_and_changes_nothing(registry):
    before = registry.snapshot()

    with pytest.raises(NotFoundError):
        registry.set("ghost", lambda s: setattr(s, "temperature", 1.0))

    assert registry.snapshot() == before


def test_set_discards_working_copy_when_mutator_fails(registry):
    def _half_write(state):
        state.temperature = 99.0
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        registry.set("ctrl1", _half_write)

    assert registry.get("ctrl1").temperature == 0.0


def test_transform_rejects_changed_key_set(registry):
    with pytest.raises(ServiceError):
        registry.transform(lambda states: {**states, "intruder": ControllerState()})

    assert "intruder" not in registry


def test_transform_is_never_observed_half_applied(registry):
    """Readers see every controller at the same generation."""
    stop = threading.Event()
    mixed: list = []

    def _writer():
        for generation in range(1, 300):

            def _bump(states, value=float(generation)):
                for state in states.values():
                    state.temperature = value
                return states

            registry.transform(_bump)
        stop.set()

    def _reader():
        while not stop.is_set():
            values = {state.temperature for _, state in registry.snapshot()}
            if len(values) != 1:
                mixed.append(values)

    readers = [threading.Thread(target=_reader) for _ in range(3)]
    writer = threading.Thread(target=_writer)
    for t in readers:
        t.start()
    writer.start()
    writer.join(timeout=10)
    stop.set()
    for t in readers:
        t.join(timeout=10)

    assert mixed == []
    assert {state.temperature for _, state in registry.snapshot()} == {299.0}


def test_concurrent_sets_on_distinct_controllers_do_not_interfere(registry):
    def _worker(name, base):
        for i in range(200):
            registry.set(name, lambda s, v=base + i: (setattr(s, "temperature", v), setattr(s, "level", v)))

    threads = [threading.Thread(target=_worker, args=(name, idx * 1000)) for idx, name in enumerate(registry.names())]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    for idx, (name, state) in enumerate(registry.snapshot()):
        assert state.temperature == idx * 1000 + 199
        assert state.level == state.temperature
