"""
batch_engine.domain.types -- Pure frozen dataclasses for the batch engine.

ZERO I/O.

Frozen dataclasses with enum status fields and tuples for immutable
collections.  The launcher replaces snapshots with
``dataclasses.replace`` rather than mutating them.

Invariants enforced:
    - All run/step snapshots are frozen (immutable).
    - ``JobParameters`` equality is by content, independent of insertion
      order, so it can identify a job instance.
    - ``Kept`` / ``Dropped`` are the only item outcomes; a transform never
      signals a filtered item by raising.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID

T = TypeVar("T")


# =============================================================================
# Status enums
# =============================================================================


class BatchStatus(str, Enum):
    """Lifecycle status shared by job runs and step executions."""

    NOT_STARTED = "not_started"  # Created, not yet started
    RUNNING = "running"  # Execution in progress
    COMPLETED = "completed"  # Finished without error
    FAILED = "failed"  # Aborted by an error

    @property
    def is_terminal(self) -> bool:
        return self in (BatchStatus.COMPLETED, BatchStatus.FAILED)


class RepeatStatus(str, Enum):
    """Returned by a tasklet to say whether it wants to be called again."""

    CONTINUABLE = "continuable"
    FINISHED = "finished"


class OverlapPolicy(str, Enum):
    """What the scheduler does when a tick fires while a run is in flight."""

    ALLOW = "allow"  # Start another run concurrently
    SKIP_IF_RUNNING = "skip_if_running"  # Drop the tick
    QUEUE = "queue"  # Run after the in-flight run finishes


# =============================================================================
# Item outcomes
# =============================================================================


@dataclass(frozen=True)
class Kept(Generic[T]):
    """The item survived a transform (possibly modified)."""

    item: T


@dataclass(frozen=True)
class Dropped:
    """The item was filtered out; it is not written."""

    reason: str


ItemOutcome = Kept[Any] | Dropped


# =============================================================================
# Job parameters
# =============================================================================

_PARAMETER_TYPES = (str, int, float, bool, date, datetime)


@dataclass(frozen=True)
class JobParameters:
    """Immutable, order-independent set of job parameters.

    Two runs of the same job with equal parameters belong to the same
    job instance.
    """

    values: tuple[tuple[str, Any], ...] = ()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None = None) -> JobParameters:
        """Build parameters from a mapping.

        Raises:
            TypeError: If a value is not a str, int, float, bool, date or
                datetime.
        """
        mapping = mapping or {}
        for key, value in mapping.items():
            if not isinstance(value, _PARAMETER_TYPES):
                raise TypeError(
                    f"Job parameter '{key}' has unsupported type "
                    f"{type(value).__name__}"
                )
        return cls(values=tuple(sorted(mapping.items())))

    def as_dict(self) -> dict[str, Any]:
        return dict(self.values)

    def get(self, key: str, default: Any = None) -> Any:
        return self.as_dict().get(key, default)

    def with_values(self, **updates: Any) -> JobParameters:
        """Return a copy with ``updates`` merged in."""
        merged = self.as_dict()
        merged.update(updates)
        return JobParameters.from_mapping(merged)

    def identifying_key(self) -> str:
        """Canonical string form; the type tag keeps ``1`` and ``"1"`` apart."""
        return ";".join(
            f"{key}={type(value).__name__}:{value}" for key, value in self.values
        )

    def __len__(self) -> int:
        return len(self.values)


# =============================================================================
# Run / step snapshots
# =============================================================================


@dataclass(frozen=True)
class StepResult:
    """Immutable snapshot of one step execution.

    ``filter_count`` counts items read but dropped by the transform chain;
    ``commit_count`` counts sink writes (one per chunk).
    """

    step_name: str
    status: BatchStatus = BatchStatus.NOT_STARTED
    read_count: int = 0
    filter_count: int = 0
    write_count: int = 0
    commit_count: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    exit_code: str | None = None
    exit_message: str | None = None


@dataclass(frozen=True)
class JobRun:
    """Immutable snapshot of one job run.

    ``step_results`` always holds one entry per declared step, in order;
    steps skipped after a failure stay NOT_STARTED.
    """

    run_id: UUID
    instance_id: int
    job_name: str
    parameters: JobParameters
    status: BatchStatus = BatchStatus.NOT_STARTED
    step_results: tuple[StepResult, ...] = ()
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_summary: str | None = None

    def step(self, step_name: str) -> StepResult:
        """Return the result of the named step.

        Raises:
            KeyError: If the run has no step with that name.
        """
        for result in self.step_results:
            if result.step_name == step_name:
                return result
        raise KeyError(f"Run {self.run_id} has no step '{step_name}'")


@dataclass(frozen=True)
class JobInstance:
    """A job name plus the parameters that identify it."""

    instance_id: int
    job_name: str
    parameters: JobParameters
    run_ids: tuple[UUID, ...] = field(default_factory=tuple)
