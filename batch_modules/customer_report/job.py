"""
batch_modules.customer_report.job
==================================

Responsibility:
    Builds the customer report ``JobDefinition``: a no-op tasklet step
    followed by a chunk step (file reader -> birthday filter ->
    transaction validator -> report writer).

Invariants enforced:
    - The definition is built once; every run gets its own reader,
      writer and transforms through the step factories.
    - The birthday filter reads the launcher's clock from the step
      context, so tests can pin the current month.
"""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

from batch_config.schema import JobConfig

from batch_engine.domain.schedule import RunIdIncrementer
from batch_engine.items.base import TransformChain
from batch_engine.steps.base import JobDefinition, StepContext
from batch_engine.steps.chunk import ChunkStep
from batch_engine.steps.tasklet import TaskletStep, noop_tasklet

from batch_modules.customer_report.processors import BirthdayFilter, TransactionValidator
from batch_modules.customer_report.reader import CustomerFileReader
from batch_modules.customer_report.writer import CustomerReportWriter


def _resolve(base_dir: Path | None, filename: str) -> Path:
    path = Path(filename)
    if base_dir is None or path.is_absolute():
        return path
    return base_dir / path


def build_job_definition(
    config: JobConfig | None = None,
    base_dir: Path | str | None = None,
    fallback: TextIO | None = None,
) -> JobDefinition:
    """
    Build the customer report job.

    Args:
        config: Job settings; defaults to ``JobConfig()``.
        base_dir: Directory that relative input/output paths resolve
            against.  None means the process working directory.
        fallback: Stream the writer uses when the report file cannot be
            opened (default ``sys.stdout``).
    """
    config = config or JobConfig()
    base = Path(base_dir) if base_dir is not None else None
    input_path = _resolve(base, config.input_file)
    output_path = _resolve(base, config.output_file)

    def reader_factory(context: StepContext) -> CustomerFileReader:
        return CustomerFileReader(input_path)

    def writer_factory(context: StepContext) -> CustomerReportWriter:
        return CustomerReportWriter(output_path, fallback=fallback)

    def chain_factory(context: StepContext) -> TransformChain:
        return TransformChain([
            BirthdayFilter(context.clock),
            TransactionValidator(config.transaction_limit),
        ])

    return JobDefinition(
        name=config.name,
        steps=(
            TaskletStep(config.tasklet_step, noop_tasklet),
            ChunkStep(
                config.chunk_step,
                source_factory=reader_factory,
                sink_factory=writer_factory,
                chain_factory=chain_factory,
                chunk_size=config.chunk_size,
                write_retry_limit=config.write_retry_limit,
            ),
        ),
        incrementer=RunIdIncrementer(),
    )
