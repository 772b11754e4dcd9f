"""
JobScheduler -- In-process fixed-rate trigger.

Contract:
    Fires every ``period_seconds`` on a background timer thread.  Each
    tick builds run-unique parameters, registers the run with the
    ``JobLauncher`` on the timer thread, and hands the execution to a
    worker pool so the timer never waits for a run.

Architecture: batch_engine/services.  Uses batch_engine.domain.schedule
    for pure fire-time and overlap evaluation and
    batch_engine.services.launcher for execution.

Invariants enforced:
    - Fixed-rate timing (``compute_next_fire``).
    - Every tick's parameters are unique (nonce or incrementer), so a
      tick never collides with a completed instance.
    - A failing run or a rejected launch never stops the timer.
    - ``stop()`` joins the timer and waits for in-flight runs; runs are
      never cancelled.
    - After ``stop()``, ``tick()`` is a no-op until ``start()``.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait

from batch_kernel.exceptions import BatchError, InvalidScheduleError
from batch_kernel.logging_config import get_logger

from batch_engine.domain.schedule import (
    ParametersStrategy,
    compute_next_fire,
    nonce_parameters,
    should_fire,
)
from batch_engine.domain.types import JobParameters, JobRun, OverlapPolicy
from batch_engine.services.launcher import JobLauncher
from batch_engine.steps.base import JobDefinition

logger = get_logger("batch.scheduler")


class JobScheduler:
    """Fixed-rate scheduler for one job definition.

    Contract:
        - ``tick()`` launches one run (public for testing).
        - ``start()`` / ``stop()`` for background thread operation.
        - ``overlap_policy`` decides what a tick does while a run is in
          flight: ALLOW, SKIP_IF_RUNNING (default) or QUEUE.

    Non-goals:
        - NOT a distributed scheduler.
        - Does NOT cancel or time out runs.
    """

    def __init__(
        self,
        launcher: JobLauncher,
        definition: JobDefinition,
        period_seconds: float = 5.0,
        overlap_policy: OverlapPolicy = OverlapPolicy.SKIP_IF_RUNNING,
        parameters_strategy: ParametersStrategy = ParametersStrategy.NONCE,
        base_parameters: JobParameters | None = None,
        max_workers: int = 4,
        nonce_source: Callable[[], int] = time.monotonic_ns,
    ):
        if period_seconds <= 0:
            raise InvalidScheduleError(period_seconds, "period must be positive")
        if parameters_strategy == ParametersStrategy.INCREMENT and definition.incrementer is None:
            raise InvalidScheduleError(
                period_seconds,
                f"job '{definition.name}' has no incrementer for the increment strategy",
            )
        self._launcher = launcher
        self._definition = definition
        self._period = period_seconds
        self._overlap_policy = overlap_policy
        self._parameters_strategy = parameters_strategy
        self._base_parameters = base_parameters or JobParameters()
        self._max_workers = 1 if overlap_policy == OverlapPolicy.QUEUE else max_workers
        self._nonce_source = nonce_source

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._pool: ThreadPoolExecutor | None = None
        self._in_flight: set[Future] = set()
        self._lock = threading.Lock()
        self._tick_count = 0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> JobRun | None:
        """Launch one run unless the overlap policy skips it.

        Returns the NOT_STARTED run handed to the worker pool, or None if
        the tick was skipped, the launch was rejected or the scheduler was
        stopped.
        """
        if self._stop_event.is_set():
            logger.debug("scheduler_tick_after_stop", extra={"job_name": self._definition.name})
            return None

        with self._lock:
            self._tick_count += 1
            in_flight = len(self._in_flight)

        if not should_fire(self._overlap_policy, in_flight):
            logger.info(
                "scheduler_tick_skipped",
                extra={
                    "job_name": self._definition.name,
                    "in_flight": in_flight,
                    "overlap_policy": self._overlap_policy.value,
                },
            )
            return None

        try:
            run = self._launcher.create_run(self._definition, self._next_parameters())
        except BatchError:
            logger.exception(
                "scheduled_launch_rejected",
                extra={"job_name": self._definition.name},
            )
            return None

        future = self._ensure_pool().submit(self._execute, run)
        with self._lock:
            self._in_flight.add(future)
        future.add_done_callback(self._discard)
        return run

    def start(self) -> None:
        """Start the timer thread; the first tick fires immediately."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._ensure_pool()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="batch-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "scheduler_started",
            extra={
                "job_name": self._definition.name,
                "period_seconds": self._period,
                "overlap_policy": self._overlap_policy.value,
            },
        )

    def stop(self, timeout: float = 30.0) -> None:
        """Stop ticking and wait for in-flight runs.

        Args:
            timeout: Max seconds to wait for the timer and for runs.
        """
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self.wait_idle(timeout=timeout)
        if self._pool is not None:
            self._pool.shutdown(wait=False)
            self._pool = None
        logger.info("scheduler_stopped", extra={"tick_count": self.tick_count})

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no run is in flight. Returns False on timeout."""
        with self._lock:
            pending = set(self._in_flight)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    @property
    def tick_count(self) -> int:
        with self._lock:
            return self._tick_count

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        """Background timer loop. Exits when stop_event is set."""
        anchor = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("scheduler_tick_exception")
            next_fire = compute_next_fire(anchor, self._period, time.monotonic())
            self._stop_event.wait(timeout=max(0.0, next_fire - time.monotonic()))

    def _next_parameters(self) -> JobParameters:
        if self._parameters_strategy == ParametersStrategy.INCREMENT:
            return self._launcher.next_parameters(self._definition)
        return nonce_parameters(self._base_parameters, self._nonce_source())

    def _execute(self, run: JobRun) -> JobRun:
        try:
            result = self._launcher.execute(self._definition, run.run_id)
        except Exception:
            logger.exception(
                "scheduled_run_crashed",
                extra={"run_id": str(run.run_id)},
            )
            raise
        logger.info(
            "scheduled_run_finished",
            extra={"run_id": str(result.run_id), "status": result.status.value},
        )
        return result

    def _ensure_pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="batch-run",
                )
            return self._pool

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._in_flight.discard(future)
