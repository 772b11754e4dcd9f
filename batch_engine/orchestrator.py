"""
BatchOrchestrator -- composition root for the batch processing system.

Contract:
    Wires the customer report job definition, the JobLauncher and, on
    demand, the JobScheduler from one ``BatchConfiguration``.  Single
    place where all batch dependencies are composed.

Architecture: batch_engine (top-level).  The only batch_engine module
    that imports from batch_modules and batch_config.

Invariants enforced:
    - The job definition is built once and shared by every run.
    - Clock injection (launcher, scheduler and transforms share one Clock).
    - ``shutdown()`` stops the scheduler, waits for in-flight runs and logs
      every known job with its instance count; it runs on ``__exit__`` on
      every exit path.
"""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

from batch_config.schema import BatchConfiguration
from batch_kernel.domain.clock import Clock, SystemClock
from batch_kernel.logging_config import get_logger

from batch_engine.domain.types import JobParameters, JobRun
from batch_engine.services.launcher import JobLauncher
from batch_engine.services.repository import JobRepository
from batch_engine.services.scheduler import JobScheduler
from batch_engine.steps.base import JobDefinition

from batch_modules.customer_report.job import build_job_definition

logger = get_logger("batch.orchestrator")


class BatchOrchestrator:
    """Composition root for the batch processing system.

    Contract:
        - ``from_config()`` factory creates a fully wired orchestrator.
        - ``launch()`` runs the job once, synchronously.
        - ``create_scheduler()`` / ``start()`` for periodic runs.
        - ``shutdown()`` (or leaving the ``with`` block) stops everything
          and logs the job/instance summary.

    Non-goals:
        - Does NOT seed input data -- see ``seed_customers()``.
    """

    def __init__(
        self,
        config: BatchConfiguration,
        definition: JobDefinition,
        launcher: JobLauncher,
    ) -> None:
        self._config = config
        self._definition = definition
        self._launcher = launcher
        self._scheduler: JobScheduler | None = None
        self._shut_down = False

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: BatchConfiguration | None = None,
        clock: Clock | None = None,
        repository: JobRepository | None = None,
        base_dir: Path | str | None = None,
        fallback: TextIO | None = None,
    ) -> BatchOrchestrator:
        """Create a fully wired BatchOrchestrator.

        Args:
            config: Deployment configuration (defaults to all defaults).
            clock: Optional clock for deterministic testing.
            repository: Optional pre-populated job repository.
            base_dir: Directory relative input/output files resolve to.
            fallback: Stream used when the report file cannot be opened.
        """
        config = config or BatchConfiguration()
        definition = build_job_definition(config.job, base_dir=base_dir, fallback=fallback)
        launcher = JobLauncher(repository=repository, clock=clock or SystemClock())
        return cls(config=config, definition=definition, launcher=launcher)

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    def launch(self, parameters: JobParameters | dict | None = None) -> JobRun:
        """Run the job once on the calling thread."""
        return self._launcher.launch(self._definition, parameters)

    def create_scheduler(self) -> JobScheduler:
        """Create (once) the scheduler configured by ``config.schedule``."""
        if self._scheduler is None:
            schedule = self._config.schedule
            self._scheduler = JobScheduler(
                launcher=self._launcher,
                definition=self._definition,
                period_seconds=schedule.period_seconds,
                overlap_policy=schedule.overlap_policy,
                parameters_strategy=schedule.parameters_strategy,
                max_workers=schedule.max_workers,
            )
        return self._scheduler

    def start(self) -> JobScheduler:
        """Start periodic runs."""
        scheduler = self.create_scheduler()
        scheduler.start()
        return scheduler

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    def shutdown(self, timeout: float = 30.0) -> dict[str, tuple[int, ...]]:
        """Stop the scheduler and log every job with its instances.

        Returns a mapping of job name to its instance ids.  Calling it
        again is a no-op that returns the same summary.
        """
        if self._scheduler is not None and not self._shut_down:
            self._scheduler.stop(timeout=timeout)
        self._shut_down = True

        repository = self._launcher.repository
        summary: dict[str, tuple[int, ...]] = {}
        for job_name in repository.job_names():
            instance_ids = tuple(i.instance_id for i in repository.instances(job_name))
            summary[job_name] = instance_ids
            logger.info(
                "job_instances_summary",
                extra={
                    "job_name": job_name,
                    "instance_count": len(instance_ids),
                    "instance_ids": list(instance_ids),
                },
            )
        return summary

    def __enter__(self) -> BatchOrchestrator:
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> BatchConfiguration:
        return self._config

    @property
    def definition(self) -> JobDefinition:
        return self._definition

    @property
    def launcher(self) -> JobLauncher:
        return self._launcher

    @property
    def repository(self) -> JobRepository:
        return self._launcher.repository

    @property
    def clock(self) -> Clock:
        return self._launcher.clock
