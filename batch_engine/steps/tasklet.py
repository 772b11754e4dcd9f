"""
TaskletStep -- a step that calls one callable until it reports FINISHED.
"""

from __future__ import annotations

from collections.abc import Callable

from batch_kernel.logging_config import get_logger

from batch_engine.domain.types import RepeatStatus
from batch_engine.steps.base import StepContext, StepContribution

logger = get_logger("batch.steps.tasklet")

Tasklet = Callable[[StepContribution, StepContext], RepeatStatus | None]


def noop_tasklet(contribution: StepContribution, context: StepContext) -> RepeatStatus:
    """Tasklet that does nothing and finishes at once."""
    logger.info("tasklet_executed", extra={"step_name": context.step_name})
    return RepeatStatus.FINISHED


class TaskletStep:
    """Step wrapping a tasklet callable.

    The tasklet is invoked repeatedly while it returns
    ``RepeatStatus.CONTINUABLE``; ``FINISHED`` or ``None`` ends the step.
    An exception from the tasklet fails the step.
    """

    def __init__(self, name: str, tasklet: Tasklet = noop_tasklet) -> None:
        self._name = name
        self._tasklet = tasklet

    @property
    def name(self) -> str:
        return self._name

    def execute(self, context: StepContext, contribution: StepContribution) -> None:
        iterations = 0
        while True:
            iterations += 1
            status = self._tasklet(contribution, context)
            if status is None or status == RepeatStatus.FINISHED:
                break
        logger.debug(
            "tasklet_finished",
            extra={"step_name": self._name, "iterations": iterations},
        )
