"""
ChunkStep -- chunk-oriented read/transform/write engine.

Contract:
    Pulls records from a ``RecordSource``, runs each through a
    ``TransformChain``, accumulates survivors into a chunk, and hands the
    chunk to a ``RecordSink`` once it holds ``chunk_size`` records or the
    source is exhausted.

Architecture: batch_engine/steps.  Source, sink and chain are built per
    execution through factories, so concurrent runs never share them.

Invariants enforced:
    - Every ``sink.write()`` receives 1..chunk_size records; an empty
      chunk is never written.  A short trailing chunk is written as is.
    - A record reaches the sink iff every transform kept it.
    - One ``sink.write()`` is one commit boundary (``commit_count``).
    - Streams opened by the step are closed on every exit path.

Failure modes:
    - Source errors (e.g. ``ResourceUnavailableError``) propagate and fail
      the step.
    - Non-filter ``ValidationError`` propagates and fails the step.
    - A failing ``sink.write()`` is retried ``write_retry_limit`` times,
      then raises ``ItemWriteError``.  The retry resends the whole chunk,
      so with ``write_retry_limit > 0`` the sink must be all-or-nothing:
      a raising ``write()`` leaves none of the chunk behind.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import ExitStack
from typing import Any

from batch_kernel.exceptions import ItemWriteError
from batch_kernel.logging_config import get_logger

from batch_engine.domain.types import Dropped
from batch_engine.items.base import (
    ItemStream,
    RecordSink,
    RecordSource,
    TransformChain,
)
from batch_engine.steps.base import StepContext, StepContribution

logger = get_logger("batch.steps.chunk")

SourceFactory = Callable[[StepContext], RecordSource]
SinkFactory = Callable[[StepContext], RecordSink]
ChainFactory = Callable[[StepContext], TransformChain]


def _empty_chain(context: StepContext) -> TransformChain:
    return TransformChain()


class ChunkStep:
    """Chunk-oriented step.

    Args:
        name: Step name, unique within its job.
        source_factory: Builds the step-scoped record source.
        sink_factory: Builds the step-scoped record sink.
        chain_factory: Builds the transform chain (default: keep all).
        chunk_size: Maximum records per sink write (commit interval).
        write_retry_limit: Extra attempts for a failed chunk write.

    Raises:
        ValueError: If ``chunk_size < 1`` or ``write_retry_limit < 0``.
    """

    def __init__(
        self,
        name: str,
        source_factory: SourceFactory,
        sink_factory: SinkFactory,
        chain_factory: ChainFactory = _empty_chain,
        chunk_size: int = 20,
        write_retry_limit: int = 0,
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        if write_retry_limit < 0:
            raise ValueError(
                f"write_retry_limit must not be negative, got {write_retry_limit}"
            )
        self._name = name
        self._source_factory = source_factory
        self._sink_factory = sink_factory
        self._chain_factory = chain_factory
        self._chunk_size = chunk_size
        self._write_retry_limit = write_retry_limit

    @property
    def name(self) -> str:
        return self._name

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    # -------------------------------------------------------------------------
    # Execute
    # -------------------------------------------------------------------------

    def execute(self, context: StepContext, contribution: StepContribution) -> None:
        source = self._source_factory(context)
        sink = self._sink_factory(context)
        chain = self._chain_factory(context)

        with ExitStack() as streams:
            for stream in (source, sink):
                if isinstance(stream, ItemStream):
                    stream.open()
                    streams.callback(stream.close)

            chunk: list[Any] = []
            while True:
                item = source.read()
                if item is None:
                    break
                contribution.read_count += 1

                outcome = chain.apply(item)
                if isinstance(outcome, Dropped):
                    contribution.filter_count += 1
                else:
                    chunk.append(outcome.item)

                if len(chunk) == self._chunk_size:
                    self._write_chunk(sink, chunk, contribution)
                    chunk = []

            if chunk:
                self._write_chunk(sink, chunk, contribution)

        logger.info(
            "chunk_step_finished",
            extra={
                "step_name": self._name,
                "read_count": contribution.read_count,
                "filter_count": contribution.filter_count,
                "write_count": contribution.write_count,
                "commit_count": contribution.commit_count,
            },
        )

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _write_chunk(
        self,
        sink: RecordSink,
        chunk: list[Any],
        contribution: StepContribution,
    ) -> None:
        """Write one chunk, retrying up to ``write_retry_limit`` times."""
        attempts = 0
        while True:
            attempts += 1
            try:
                sink.write(list(chunk))
                break
            except Exception as exc:
                if attempts > self._write_retry_limit:
                    raise ItemWriteError(
                        self._name, len(chunk), attempts, str(exc),
                    ) from exc
                logger.warning(
                    "chunk_write_retry",
                    extra={
                        "step_name": self._name,
                        "attempt": attempts,
                        "chunk_size": len(chunk),
                        "error": str(exc),
                    },
                )

        contribution.write_count += len(chunk)
        contribution.commit_count += 1
        logger.debug(
            "chunk_written",
            extra={
                "step_name": self._name,
                "chunk_size": len(chunk),
                "commit": contribution.commit_count,
            },
        )
