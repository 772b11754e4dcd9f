"""
batch_engine.steps -- Step protocol, job definition, tasklet and chunk steps.
"""

from batch_engine.steps.base import (
    JobDefinition,
    Step,
    StepContext,
    StepContribution,
)
from batch_engine.steps.chunk import ChunkStep
from batch_engine.steps.tasklet import TaskletStep, noop_tasklet

__all__ = [
    "ChunkStep",
    "JobDefinition",
    "Step",
    "StepContext",
    "StepContribution",
    "TaskletStep",
    "noop_tasklet",
]
