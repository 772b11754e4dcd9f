"""
Step protocol, step context, and JobDefinition.

Contract:
    ``Step`` is the interface every step implements: a unique ``name`` and
    ``execute(context, contribution)``.  A step signals failure by raising;
    the launcher owns the status transitions.
    ``JobDefinition`` is the immutable, ordered list of steps of one job.

Architecture:
    batch_engine/steps.  Imports only batch_engine.domain and the kernel.

Invariants enforced:
    - Step names are unique within a JobDefinition.
    - A JobDefinition is built once at startup and shared by every run;
      per-run state lives in ``StepContext`` / ``StepContribution``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable
from uuid import UUID

from batch_kernel.domain.clock import Clock

from batch_engine.domain.schedule import RunIdIncrementer
from batch_engine.domain.types import JobParameters


# =============================================================================
# Per-execution state
# =============================================================================


@dataclass(frozen=True)
class StepContext:
    """Read-only facts about the step execution in progress.

    Passed to source/sink/transform factories so that they can build
    step-scoped instances.
    """

    run_id: UUID
    instance_id: int
    job_name: str
    step_name: str
    parameters: JobParameters
    clock: Clock


@dataclass
class StepContribution:
    """Mutable counters a step updates while it runs.

    The launcher copies them into the frozen ``StepResult``.
    """

    read_count: int = 0
    filter_count: int = 0
    write_count: int = 0
    commit_count: int = 0
    exit_message: str | None = None


# =============================================================================
# Step Protocol
# =============================================================================


@runtime_checkable
class Step(Protocol):
    """Protocol for one stage of a job.

    Non-goals:
        - Does NOT set its own status -- the launcher does.
        - Does NOT retry itself unless configured to (chunk write retry).
    """

    @property
    def name(self) -> str: ...

    def execute(self, context: StepContext, contribution: StepContribution) -> None:
        """Run the step to completion or raise."""
        ...


# =============================================================================
# JobDefinition
# =============================================================================


class JobDefinition:
    """Immutable ordered sequence of steps under a job name.

    Contract:
        - Steps run strictly in declaration order.
        - ``incrementer`` (optional) produces the parameters of the next
          instance for ``JobLauncher.start_next_instance()``.

    Raises:
        ValueError: On an empty name, no steps, or duplicate step names.
    """

    __slots__ = ("_name", "_steps", "_incrementer")

    def __init__(
        self,
        name: str,
        steps: tuple[Step, ...] | list[Step],
        incrementer: RunIdIncrementer | None = None,
    ) -> None:
        if not name:
            raise ValueError("Job name must not be empty")
        steps = tuple(steps)
        if not steps:
            raise ValueError(f"Job '{name}' must declare at least one step")
        seen: set[str] = set()
        for step in steps:
            if step.name in seen:
                raise ValueError(
                    f"Step name '{step.name}' is declared twice in job '{name}'"
                )
            seen.add(step.name)
        self._name = name
        self._steps = steps
        self._incrementer = incrementer

    @property
    def name(self) -> str:
        return self._name

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(step.name for step in self._steps)

    @property
    def incrementer(self) -> RunIdIncrementer | None:
        return self._incrementer

    def __repr__(self) -> str:
        return f"JobDefinition(name={self._name!r}, steps={self.step_names!r})"
