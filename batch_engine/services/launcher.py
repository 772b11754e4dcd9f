"""
JobLauncher -- job/step state machine and run lifecycle.

Contract:
    Creates runs (with duplicate-instance rejection), executes their steps
    in declared order, and records every status transition in the
    ``JobRepository``.

Architecture: batch_engine/services.  Imports from batch_engine.domain,
    batch_engine.steps, batch_engine.services.repository and the kernel.

Invariants enforced:
    - Run FSM: NOT_STARTED -> RUNNING -> COMPLETED | FAILED.
    - Step FSM: the same three transitions, scoped to one step.
    - The first failing step fails the run; later steps stay NOT_STARTED.
    - A run never stays RUNNING after ``execute()`` returns or raises.
    - Launching an instance that already COMPLETED raises
      ``DuplicateRunError`` before any step runs.
    - All timestamps come from the injected Clock.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import replace
from typing import Any
from uuid import UUID

from batch_kernel.domain.clock import Clock, SystemClock
from batch_kernel.logging_config import LogContext, get_logger

from batch_engine.domain.types import BatchStatus, JobParameters, JobRun, StepResult
from batch_engine.services.repository import JobRepository
from batch_engine.steps.base import JobDefinition, Step, StepContext, StepContribution

logger = get_logger("batch.launcher")


def _as_parameters(parameters: JobParameters | Mapping[str, Any] | None) -> JobParameters:
    if isinstance(parameters, JobParameters):
        return parameters
    return JobParameters.from_mapping(parameters)


class JobLauncher:
    """Runs job definitions and tracks their runs.

    Contract:
        - ``create_run()`` registers a NOT_STARTED run (duplicate checks).
        - ``execute()`` runs the steps of a NOT_STARTED run.
        - ``launch()`` = ``create_run()`` + ``execute()`` on the caller's
          thread.
        - ``start_next_instance()`` launches with parameters from the
          definition's incrementer.

    Non-goals:
        - Does NOT manage threads -- that is the scheduler's job.
        - Does NOT cancel or time out a run once it started.
    """

    def __init__(
        self,
        repository: JobRepository | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository or JobRepository()
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_run(
        self,
        definition: JobDefinition,
        parameters: JobParameters | Mapping[str, Any] | None = None,
    ) -> JobRun:
        """Register a new NOT_STARTED run of ``definition``.

        Raises:
            DuplicateRunError: An identical instance already completed.
            JobRunAlreadyRunningError: An identical instance is in flight.
            TypeError: If a parameter value has an unsupported type.
        """
        params = _as_parameters(parameters)
        run = self._repository.create_run(
            job_name=definition.name,
            parameters=params,
            step_names=definition.step_names,
            created_at=self._clock.now(),
        )
        logger.info(
            "job_run_created",
            extra={
                "run_id": str(run.run_id),
                "instance_id": run.instance_id,
                "job_name": definition.name,
                "parameters": params.as_dict(),
            },
        )
        return run

    # -------------------------------------------------------------------------
    # Execute
    # -------------------------------------------------------------------------

    def execute(self, definition: JobDefinition, run_id: UUID) -> JobRun:
        """Execute the steps of a NOT_STARTED run.

        Step failures are recorded on the run, never raised.  An exception
        outside ``Exception`` (``KeyboardInterrupt``, ``SystemExit``) marks
        the run FAILED and is re-raised.

        Raises:
            JobRunNotFoundError: If ``run_id`` does not exist.
            JobRunAlreadyRunningError: If the run is not NOT_STARTED.
        """
        start_time = time.monotonic()
        run = self._repository.start_run(run_id, started_at=self._clock.now())

        with LogContext.bind(
            run_id=str(run.run_id),
            job_name=run.job_name,
            instance_id=str(run.instance_id),
        ):
            logger.info("job_run_started", extra={"step_count": len(definition.steps)})

            try:
                for index, step in enumerate(definition.steps):
                    result = self._execute_step(run, step)
                    run = self._repository.update(
                        replace(run, step_results=_replace_at(run.step_results, index, result))
                    )
                    if result.status == BatchStatus.FAILED:
                        run = self._repository.update(
                            replace(
                                run,
                                status=BatchStatus.FAILED,
                                completed_at=self._clock.now(),
                                error_summary=f"Step {step.name} failed: {result.exit_message}",
                            )
                        )
                        break
                else:
                    run = self._repository.update(
                        replace(run, status=BatchStatus.COMPLETED, completed_at=self._clock.now())
                    )
            except BaseException as exc:
                logger.exception("job_run_interrupted")
                self._fail_interrupted(run_id, exc)
                raise

            logger.info(
                "job_run_finished",
                extra={
                    "status": run.status.value,
                    "duration_ms": int((time.monotonic() - start_time) * 1000),
                },
            )
        return run

    def launch(
        self,
        definition: JobDefinition,
        parameters: JobParameters | Mapping[str, Any] | None = None,
    ) -> JobRun:
        """Create and execute a run synchronously.

        Raises:
            DuplicateRunError: An identical instance already completed.
            JobRunAlreadyRunningError: An identical instance is in flight.
        """
        run = self.create_run(definition, parameters)
        return self.execute(definition, run.run_id)

    def next_parameters(self, definition: JobDefinition) -> JobParameters:
        """Parameters for the next instance, from the definition's incrementer.

        Raises:
            ValueError: If the definition has no incrementer.
        """
        if definition.incrementer is None:
            raise ValueError(f"Job '{definition.name}' has no incrementer")
        last = self._repository.last_instance(definition.name)
        return definition.incrementer.get_next(last.parameters if last else None)

    def start_next_instance(self, definition: JobDefinition) -> JobRun:
        """Launch the next instance of ``definition`` (incrementer parameters)."""
        return self.launch(definition, self.next_parameters(definition))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_run(self, run_id: UUID) -> JobRun:
        """Raises JobRunNotFoundError if ``run_id`` is unknown."""
        return self._repository.get_run(run_id)

    @property
    def repository(self) -> JobRepository:
        return self._repository

    @property
    def clock(self) -> Clock:
        return self._clock

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _execute_step(self, run: JobRun, step: Step) -> StepResult:
        """Run one step through its FSM and return its final result."""
        context = StepContext(
            run_id=run.run_id,
            instance_id=run.instance_id,
            job_name=run.job_name,
            step_name=step.name,
            parameters=run.parameters,
            clock=self._clock,
        )
        contribution = StepContribution()
        started_at = self._clock.now()

        with LogContext.bind(step_name=step.name):
            running = StepResult(
                step_name=step.name, status=BatchStatus.RUNNING, started_at=started_at,
            )
            self._repository.update(
                replace(run, step_results=_replace_by_name(run.step_results, running))
            )
            logger.info("step_started")

            try:
                step.execute(context, contribution)
            except Exception as exc:
                logger.exception("step_failed")
                return _result_from(
                    step.name,
                    BatchStatus.FAILED,
                    contribution,
                    started_at,
                    self._clock.now(),
                    exit_code=getattr(exc, "code", type(exc).__name__),
                    exit_message=str(exc),
                )

            logger.info("step_completed")
            return _result_from(
                step.name,
                BatchStatus.COMPLETED,
                contribution,
                started_at,
                self._clock.now(),
                exit_code=BatchStatus.COMPLETED.name,
                exit_message=contribution.exit_message,
            )

    def _fail_interrupted(self, run_id: UUID, exc: BaseException) -> JobRun:
        """Move an interrupted run, and its RUNNING step, to FAILED."""
        now = self._clock.now()
        run = self._repository.get_run(run_id)
        if run.status.is_terminal:
            return run
        step_results = tuple(
            replace(
                r,
                status=BatchStatus.FAILED,
                completed_at=now,
                exit_code=type(exc).__name__,
                exit_message=str(exc) or None,
            )
            if r.status == BatchStatus.RUNNING else r
            for r in run.step_results
        )
        return self._repository.update(
            replace(
                run,
                status=BatchStatus.FAILED,
                step_results=step_results,
                completed_at=now,
                error_summary=f"Run interrupted: {type(exc).__name__}",
            )
        )


def _result_from(
    step_name: str,
    status: BatchStatus,
    contribution: StepContribution,
    started_at,
    completed_at,
    exit_code: str | None,
    exit_message: str | None,
) -> StepResult:
    return StepResult(
        step_name=step_name,
        status=status,
        read_count=contribution.read_count,
        filter_count=contribution.filter_count,
        write_count=contribution.write_count,
        commit_count=contribution.commit_count,
        started_at=started_at,
        completed_at=completed_at,
        exit_code=exit_code,
        exit_message=exit_message,
    )


def _replace_at(
    results: tuple[StepResult, ...], index: int, result: StepResult,
) -> tuple[StepResult, ...]:
    return results[:index] + (result,) + results[index + 1:]


def _replace_by_name(
    results: tuple[StepResult, ...], result: StepResult,
) -> tuple[StepResult, ...]:
    return tuple(result if r.step_name == result.step_name else r for r in results)
