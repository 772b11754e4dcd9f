"""
Pytest fixtures for the batch engine test suite.

Provides:
- Structured logging configured for every test session
- A captured_logs fixture returning parsed JSON log records
- Deterministic clock, repository and launcher fixtures
- In-memory record sources/sinks and a small job definition builder
"""

import json
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from io import StringIO
from typing import Any

import pytest

from batch_kernel.domain.clock import DeterministicClock
from batch_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

from batch_engine.items.base import TransformChain
from batch_engine.services.launcher import JobLauncher
from batch_engine.services.repository import JobRepository
from batch_engine.steps.base import JobDefinition, StepContext
from batch_engine.steps.chunk import ChunkStep
from batch_engine.steps.tasklet import TaskletStep


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture batch_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, launcher):
            launcher.launch(definition, {"run.id": 1})
            logs = captured_logs()
            assert any(r["message"] == "job_run_finished" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("batch_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Engine fixtures
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    """Clock pinned to 2024-06-15 12:00 UTC (June)."""
    return DeterministicClock(datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def repository() -> JobRepository:
    return JobRepository()


@pytest.fixture
def launcher(repository, clock) -> JobLauncher:
    return JobLauncher(repository=repository, clock=clock)


# =============================================================================
# In-memory sources and sinks
# =============================================================================


class ListSource:
    """Record source over a list; tracks open/close calls."""

    def __init__(self, records: Sequence[Any]):
        self._records = list(records)
        self._position = 0
        self.opened = False
        self.closed = False

    def open(self) -> None:
        self.opened = True

    def read(self) -> Any | None:
        if self._position >= len(self._records):
            return None
        record = self._records[self._position]
        self._position += 1
        return record

    def close(self) -> None:
        self.closed = True


class ListSink:
    """Record sink collecting every chunk it receives."""

    def __init__(self, fail_times: int = 0):
        self.chunks: list[list[Any]] = []
        self._fail_times = fail_times
        self.attempts = 0
        self.opened = False
        self.closed = False

    def open(self) -> None:
        self.opened = True

    def write(self, items: Sequence[Any]) -> None:
        self.attempts += 1
        if self._fail_times > 0:
            self._fail_times -= 1
            raise OSError("disk full")
        self.chunks.append(list(items))

    def close(self) -> None:
        self.closed = True

    @property
    def items(self) -> list[Any]:
        return [item for chunk in self.chunks for item in chunk]


@pytest.fixture
def make_job() -> Callable[..., tuple[JobDefinition, ListSink]]:
    """
    Build a two-step job (tasklet + chunk) over an in-memory list.

    Returns the definition and the sink shared by every run, so tests can
    inspect what was written.
    """

    def _make(
        records: Sequence[Any] = (1, 2, 3),
        chunk_size: int = 2,
        transforms: Sequence[Any] = (),
        name: str = "testJob",
        sink: ListSink | None = None,
        incrementer=None,
    ) -> tuple[JobDefinition, ListSink]:
        target = sink or ListSink()

        def chain_factory(context: StepContext) -> TransformChain:
            return TransformChain(transforms)

        definition = JobDefinition(
            name=name,
            steps=(
                TaskletStep("taskletStep"),
                ChunkStep(
                    "chunkStep",
                    source_factory=lambda context: ListSource(records),
                    sink_factory=lambda context: target,
                    chain_factory=chain_factory,
                    chunk_size=chunk_size,
                ),
            ),
            incrementer=incrementer,
        )
        return definition, target

    return _make
