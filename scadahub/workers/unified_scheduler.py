"""
Centralized scheduling service for background tasks.

The scheduler knows nothing about controllers: it runs registered callables
at a fixed rate. The telemetry tick is its only job today.

Design Principles:
- Single scheduler loop thread
- Bounded worker pool for job execution
- Fixed-rate schedules that advance from the slot time, not the finish time
- A job never runs concurrently with itself; a slot that comes due while the
  previous run is still executing is skipped
- A failing job is logged and rescheduled; it never stops the loop
"""

from __future__ import annotations

import heapq
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class ScheduledJob:
    """A recurring job and its execution counters."""

    job_id: str
    task_name: str
    interval_seconds: float

    next_run: datetime | None = None
    last_run: datetime | None = None
    running: bool = False
    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    skipped_count: int = 0
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (for API responses)."""
        return {
            "job_id": self.job_id,
            "task_name": self.task_name,
            "interval_seconds": self.interval_seconds,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "running": self.running,
            "run_count": self.run_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "skipped_count": self.skipped_count,
            "last_error": self.last_error,
        }


class UnifiedScheduler:
    """
    Fixed-rate scheduler for recurring background tasks.

    Due times live in a heap of ``(run_at_ts, seq, job_id)``. Entries are
    never removed in place: when a job is rescheduled a new entry is pushed
    and the old one is recognised as stale because it no longer matches
    ``job.next_run``.
    """

    def __init__(self, check_interval_seconds: float = 0.05, max_workers: int = 2):
        """
        Args:
            check_interval_seconds: How often the loop looks for due jobs
            max_workers: Maximum number of concurrent job executions
        """
        self._check_interval = float(check_interval_seconds)
        self._max_workers = int(max_workers)

        self._jobs: dict[str, ScheduledJob] = {}
        self._tasks: dict[str, Callable[[], Any]] = {}

        self._job_heap: list[tuple[float, int, str]] = []
        self._heap_seq = 0

        self._running = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._job_lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = None

        logger.info("UnifiedScheduler initialized (max_workers=%d)", self._max_workers)

    # ==================== Registration ====================

    def register_task(self, name: str, func: Callable[[], Any]) -> None:
        """Register a task function under a name."""
        self._tasks[name] = func
        logger.debug("Registered task: %s", name)

    def schedule_interval(
        self,
        task_name: str,
        interval_seconds: float,
        *,
        job_id: str | None = None,
        start_immediately: bool = False,
    ) -> ScheduledJob:
        """
        Run a registered task every ``interval_seconds``.

        Raises:
            ValueError: non-positive interval or unknown task
        """
        interval = float(interval_seconds)
        if interval <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds!r}")
        if task_name not in self._tasks:
            raise ValueError(f"Task not registered: {task_name}")

        now = datetime.now()
        job = ScheduledJob(
            job_id=job_id or task_name,
            task_name=task_name,
            interval_seconds=interval,
            next_run=now if start_immediately else now + timedelta(seconds=interval),
        )

        with self._job_lock:
            self._jobs[job.job_id] = job
            self._push_heap(job)
        logger.info("Scheduled interval job: %s (every %ss)", job.job_id, interval)
        return job

    def get_job(self, job_id: str) -> ScheduledJob | None:
        return self._jobs.get(job_id)

    # ==================== Scheduler Control ====================

    def start(self) -> None:
        """Start the scheduler background thread."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="UnifiedSchedulerJob",
            )

        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="UnifiedScheduler")
        self._thread.start()
        logger.info("UnifiedScheduler started")

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        """
        Stop the loop and the worker pool.

        Args:
            wait: Wait for the loop thread and running jobs to finish
            timeout: Maximum wait in seconds for the loop thread
        """
        if not self._running:
            return

        self._running = False
        self._stop_event.set()

        if wait and self._thread:
            self._thread.join(timeout=timeout)

        if self._executor:
            self._executor.shutdown(wait=wait)
            self._executor = None

        logger.info("UnifiedScheduler stopped")

    def shutdown(self, wait: bool = True, timeout: float = 5.0) -> None:
        """Alias for stop(); matches other services' shutdown() convention."""
        self.stop(wait=wait, timeout=timeout)

    def is_running(self) -> bool:
        return self._running

    def get_status(self) -> dict[str, Any]:
        with self._job_lock:
            return {
                "running": self._running,
                "total_jobs": len(self._jobs),
                "max_workers": self._max_workers,
                "jobs": [job.to_dict() for job in self._jobs.values()],
            }

    # ==================== Loop ====================

    def _push_heap(self, job: ScheduledJob) -> None:
        if job.next_run is None:
            return
        self._heap_seq += 1
        heapq.heappush(self._job_heap, (job.next_run.timestamp(), self._heap_seq, job.job_id))

    def _run_loop(self) -> None:
        logger.debug("Scheduler loop started")
        while self._running:
            try:
                self._process_due_jobs()
            except Exception as e:
                logger.error("Error in scheduler loop: %s", e, exc_info=True)
            self._stop_event.wait(self._check_interval)
        logger.debug("Scheduler loop ended")

    def _process_due_jobs(self) -> None:
        """Hand every due slot to the worker pool, or skip it if the job is busy."""
        now_ts = datetime.now().timestamp()

        with self._job_lock:
            while self._job_heap and self._job_heap[0][0] <= now_ts:
                run_at_ts, _seq, job_id = heapq.heappop(self._job_heap)

                job = self._jobs.get(job_id)
                if job is None or job.next_run is None:
                    continue
                if abs(job.next_run.timestamp() - run_at_ts) > 1e-6:
                    continue  # stale entry

                slot = job.next_run
                # Book the next slot first so a long run cannot shift the grid
                job.next_run = self._next_slot(slot, job.interval_seconds)
                self._push_heap(job)

                if job.running:
                    job.skipped_count += 1
                    logger.debug("Job %s still running; skipping slot %s", job_id, slot.isoformat())
                    continue

                if self._executor is None:
                    logger.warning("Executor unavailable; skipping job %s", job_id)
                    continue

                job.running = True
                try:
                    self._executor.submit(self._execute_job, job)
                except RuntimeError as e:
                    # pool shut down between stop() and this pass
                    job.running = False
                    logger.warning("Could not submit job %s: %s", job_id, e)

    def _execute_job(self, job: ScheduledJob) -> None:
        func = self._tasks[job.task_name]
        started_at = datetime.now()
        try:
            func()
        except Exception as e:
            with self._job_lock:
                job.failure_count += 1
                job.last_error = str(e)
            logger.error("Job %s failed: %s", job.job_id, e, exc_info=True)
        else:
            with self._job_lock:
                job.success_count += 1
                job.last_error = None
        finally:
            with self._job_lock:
                job.last_run = started_at
                job.run_count += 1
                job.running = False

    @staticmethod
    def _next_slot(slot: datetime, interval: float) -> datetime:
        """
        The slot after ``slot``. If the loop fell behind (e.g. system sleep),
        jump to the first slot still in the future instead of piling up runs.
        """
        next_run = slot + timedelta(seconds=interval)
        now = datetime.now()
        if next_run <= now:
            missed = int((now - next_run).total_seconds() // interval) + 1
            next_run += timedelta(seconds=missed * interval)
        return next_run
