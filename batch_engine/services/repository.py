"""
JobRepository -- in-memory store of job instances and run snapshots.

Contract:
    Holds every ``JobInstance`` and ``JobRun`` created in this process.
    ``create_run()`` performs the duplicate-instance checks and the insert
    under one lock, so two concurrent launches with equal parameters can
    never both start.

Architecture: batch_engine/services.  In-memory only; the store lives and
    dies with the process.

Invariants enforced:
    - instance_id is allocated sequentially per repository, starting at 1.
    - A COMPLETED instance never receives another run.
    - An instance has at most one in-flight (NOT_STARTED / RUNNING) run.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from uuid import UUID, uuid4

from batch_kernel.exceptions import (
    DuplicateRunError,
    JobRunAlreadyRunningError,
    JobRunNotFoundError,
)

from batch_engine.domain.types import (
    BatchStatus,
    JobInstance,
    JobParameters,
    JobRun,
    StepResult,
)


class JobRepository:
    """Thread-safe in-memory job repository."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._instances: dict[tuple[str, str], JobInstance] = {}
        self._instance_order: list[tuple[str, str]] = []
        self._runs: dict[UUID, JobRun] = {}
        self._next_instance_id = 1

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_run(
        self,
        job_name: str,
        parameters: JobParameters,
        step_names: tuple[str, ...],
        created_at: datetime | None = None,
    ) -> JobRun:
        """Create a NOT_STARTED run, creating its instance if new.

        Raises:
            DuplicateRunError: The instance already has a COMPLETED run.
            JobRunAlreadyRunningError: The instance has an in-flight run.
        """
        key = (job_name, parameters.identifying_key())
        with self._lock:
            instance = self._instances.get(key)
            if instance is None:
                instance = JobInstance(
                    instance_id=self._next_instance_id,
                    job_name=job_name,
                    parameters=parameters,
                )
                self._next_instance_id += 1
                self._instance_order.append(key)
            else:
                for run_id in instance.run_ids:
                    prior = self._runs[run_id]
                    if prior.status == BatchStatus.COMPLETED:
                        raise DuplicateRunError(
                            job_name,
                            instance.instance_id,
                            parameters.identifying_key(),
                        )
                    if not prior.status.is_terminal:
                        raise JobRunAlreadyRunningError(job_name, str(run_id))

            run = JobRun(
                run_id=uuid4(),
                instance_id=instance.instance_id,
                job_name=job_name,
                parameters=parameters,
                status=BatchStatus.NOT_STARTED,
                step_results=tuple(StepResult(step_name=n) for n in step_names),
                created_at=created_at,
            )
            self._runs[run.run_id] = run
            self._instances[key] = replace(
                instance, run_ids=instance.run_ids + (run.run_id,),
            )
            return run

    def start_run(self, run_id: UUID, started_at: datetime | None = None) -> JobRun:
        """Move a NOT_STARTED run to RUNNING.

        Raises:
            JobRunNotFoundError: If ``run_id`` is unknown.
            JobRunAlreadyRunningError: If the run already left NOT_STARTED.
        """
        with self._lock:
            run = self.get_run(run_id)
            if run.status != BatchStatus.NOT_STARTED:
                raise JobRunAlreadyRunningError(run.job_name, str(run_id))
            run = replace(run, status=BatchStatus.RUNNING, started_at=started_at)
            self._runs[run_id] = run
            return run

    def update(self, run: JobRun) -> JobRun:
        """Replace the stored snapshot of an existing run.

        Raises:
            JobRunNotFoundError: If the run was never created here.
        """
        with self._lock:
            if run.run_id not in self._runs:
                raise JobRunNotFoundError(str(run.run_id))
            self._runs[run.run_id] = run
            return run

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_run(self, run_id: UUID) -> JobRun:
        """Raises JobRunNotFoundError if ``run_id`` is unknown."""
        with self._lock:
            try:
                return self._runs[run_id]
            except KeyError:
                raise JobRunNotFoundError(str(run_id)) from None

    def job_names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted({name for name, _ in self._instance_order}))

    def instances(self, job_name: str) -> tuple[JobInstance, ...]:
        """Instances of ``job_name`` in creation order."""
        with self._lock:
            return tuple(
                self._instances[key]
                for key in self._instance_order
                if key[0] == job_name
            )

    def instance_count(self, job_name: str) -> int:
        return len(self.instances(job_name))

    def last_instance(self, job_name: str) -> JobInstance | None:
        instances = self.instances(job_name)
        return instances[-1] if instances else None

    def runs(self, job_name: str) -> tuple[JobRun, ...]:
        """Runs of ``job_name``, grouped by instance, in creation order."""
        with self._lock:
            return tuple(
                self._runs[run_id]
                for instance in self.instances(job_name)
                for run_id in instance.run_ids
            )

    def running_runs(self) -> tuple[JobRun, ...]:
        with self._lock:
            return tuple(
                run for run in self._runs.values()
                if run.status == BatchStatus.RUNNING
            )
