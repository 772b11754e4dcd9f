"""
batch_engine.domain -- Pure types and value objects for batch processing.

ZERO I/O.  All types are frozen dataclasses.
"""

from batch_engine.domain.schedule import (
    ParametersStrategy,
    RunIdIncrementer,
    compute_next_fire,
    nonce_parameters,
    should_fire,
)
from batch_engine.domain.types import (
    BatchStatus,
    Dropped,
    ItemOutcome,
    JobInstance,
    JobParameters,
    JobRun,
    Kept,
    OverlapPolicy,
    RepeatStatus,
    StepResult,
)

__all__ = [
    "BatchStatus",
    "Dropped",
    "ItemOutcome",
    "JobInstance",
    "JobParameters",
    "JobRun",
    "Kept",
    "OverlapPolicy",
    "ParametersStrategy",
    "RepeatStatus",
    "RunIdIncrementer",
    "StepResult",
    "compute_next_fire",
    "nonce_parameters",
    "should_fire",
]
