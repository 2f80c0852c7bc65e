import threading
import time

import pytest

from scadahub.workers.unified_scheduler import UnifiedScheduler


@pytest.fixture()
def scheduler():
    sched = UnifiedScheduler(check_interval_seconds=0.01, max_workers=2)
    yield sched
    sched.stop(wait=True, timeout=2.0)


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.mark.parametrize("interval", [0, -1])
def test_schedule_interval_rejects_non_positive_interval(scheduler, interval):
    scheduler.register_task("noop", lambda: None)

    with pytest.raises(ValueError):
        scheduler.schedule_interval("noop", interval)


def test_schedule_interval_requires_registered_task(scheduler):
    with pytest.raises(ValueError):
        scheduler.schedule_interval("unregistered", 1.0)


def test_job_id_defaults_to_task_name(scheduler):
    scheduler.register_task("tick", lambda: None)

    job = scheduler.schedule_interval("tick", 1.0)

    assert job.job_id == "tick"
    assert scheduler.get_job("tick") is job
    assert scheduler.get_job("other") is None


def test_start_immediately_runs_first_slot_without_waiting(scheduler):
    fired = threading.Event()
    scheduler.register_task("tick", fired.set)
    scheduler.schedule_interval("tick", 60.0, start_immediately=True)

    scheduler.start()

    assert fired.wait(2.0)
    assert scheduler.is_running()


def test_without_start_immediately_first_run_waits_one_interval(scheduler):
    calls = []
    scheduler.register_task("tick", lambda: calls.append(1))
    job = scheduler.schedule_interval("tick", 60.0)

    scheduler.start()
    time.sleep(0.1)

    assert calls == []
    assert job.run_count == 0


def test_job_repeats_at_interval(scheduler):
    calls = []
    scheduler.register_task("tick", lambda: calls.append(time.monotonic()))
    job = scheduler.schedule_interval("tick", 0.05, start_immediately=True)

    scheduler.start()
    time.sleep(0.4)
    scheduler.stop()

    assert len(calls) >= 3
    assert job.success_count == len(calls)
    assert job.last_run is not None


def test_failing_job_does_not_stop_the_loop(scheduler):
    attempts = []
    recovered = threading.Event()

    def _flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("transient")
        recovered.set()

    scheduler.register_task("flaky", _flaky)
    job = scheduler.schedule_interval("flaky", 0.03, start_immediately=True)
    scheduler.start()

    assert recovered.wait(3.0)
    assert _wait_for(lambda: job.success_count >= 1)
    assert job.failure_count >= 2
    assert scheduler.is_running()


def test_slow_job_never_overlaps_itself(scheduler):
    release = threading.Event()
    lock = threading.Lock()
    active = {"now": 0, "max": 0}

    def _slow():
        with lock:
            active["now"] += 1
            active["max"] = max(active["max"], active["now"])
        release.wait(1.0)
        with lock:
            active["now"] -= 1

    scheduler.register_task("slow", _slow)
    job = scheduler.schedule_interval("slow", 0.02, start_immediately=True)
    scheduler.start()

    time.sleep(0.25)
    release.set()
    scheduler.stop()

    assert active["max"] == 1
    assert job.skipped_count >= 1


def test_stop_then_status(scheduler):
    scheduler.register_task("tick", lambda: None)
    scheduler.schedule_interval("tick", 1.0)
    scheduler.start()
    scheduler.stop()

    status = scheduler.get_status()

    assert status["running"] is False
    assert status["total_jobs"] == 1
    assert status["jobs"][0]["task_name"] == "tick"
    assert status["jobs"][0]["interval_seconds"] == 1.0
