import json
import time

from scadahub.services.simulation import TICK_TASK_NAME


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_fresh_start_seeds_default_controllers(app_factory, state_file):
    app = app_factory(default_controllers=["boiler", "pump"])

    assert sorted(app.test_client().get("/all").get_json()) == ["boiler", "pump"]
    assert not state_file.exists()


def test_restart_reproduces_registry(app_factory):
    first = app_factory()
    client = first.test_client()
    client.post("/controller/set", data={"id": "ctrl1", "temperature": "42.5", "level": "77"})
    client.post("/controller/set", data={"id": "ctrl3", "temperature": "21.123456", "level": "0.5"})
    client.post("/controller/state", data={"id": "ctrl2", "enable": "false"})
    before = client.get("/all").get_json()
    before_states = first.config["CONTAINER"].registry.snapshot()
    first.config["CONTAINER"].shutdown()

    second = app_factory(default_controllers=["something", "else"])

    assert second.test_client().get("/all").get_json() == before
    assert second.config["CONTAINER"].registry.snapshot() == before_states


def test_start_ticks_immediately_and_shutdown_saves(app_factory, state_file):
    app = app_factory(tick_interval_ms=50)
    container = app.config["CONTAINER"]

    container.start()
    container.start()

    assert _wait_for(lambda: container.simulation.tick_count >= 2)
    job = container.scheduler.get_job(TICK_TASK_NAME)
    assert job.interval_seconds == 0.05
    assert container.scheduler.get_status()["total_jobs"] == 1
    assert not state_file.exists()

    container.shutdown()

    assert container.scheduler.is_running() is False
    persisted = json.loads(state_file.read_text(encoding="utf-8"))
    assert persisted == {name: state.to_dict() for name, state in container.registry.snapshot()}
    for record in persisted.values():
        assert 20.0 <= record["temperature"] < 30.0


def test_shutdown_is_idempotent(app_factory, state_file):
    container = app_factory().config["CONTAINER"]

    container.shutdown()
    state_file.unlink()
    container.shutdown()

    assert not state_file.exists()


def test_status_reports_running_scheduler(app_factory):
    app = app_factory(tick_interval_ms=50)
    container = app.config["CONTAINER"]
    container.start()

    assert _wait_for(lambda: container.simulation.tick_count >= 1)
    body = app.test_client().get("/status").get_json()

    assert body["scheduler_running"] is True
    assert body["ticks"] >= 1
    assert body["jobs"][0]["job_id"] == TICK_TASK_NAME
