"""
Batch configuration schema.

Defines the human-authored configuration of the customer report job --
job shape, schedule, seed data and logging.  YAML files are parsed into
these types by ``batch_config.loader``.

Every type is a frozen dataclass; ``__post_init__`` rejects out-of-range
values with ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from batch_kernel.exceptions import ConfigurationError

from batch_engine.domain.schedule import ParametersStrategy
from batch_engine.domain.types import OverlapPolicy

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# ---------------------------------------------------------------------------
# Job
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JobConfig:
    """Shape of the customer report job."""

    name: str = "customerReportJob"
    tasklet_step: str = "taskletStep"
    chunk_step: str = "chunkStep"
    chunk_size: int = 20
    input_file: str = "database.yaml"
    output_file: str = "output.txt"
    transaction_limit: int = 5
    write_retry_limit: int = 0

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("job.name", "must not be empty")
        if self.tasklet_step == self.chunk_step:
            raise ConfigurationError("job.chunk_step", "must differ from job.tasklet_step")
        if self.chunk_size < 1:
            raise ConfigurationError("job.chunk_size", f"must be >= 1, got {self.chunk_size}")
        if self.transaction_limit < 0:
            raise ConfigurationError(
                "job.transaction_limit", f"must be >= 0, got {self.transaction_limit}",
            )
        if self.write_retry_limit < 0:
            raise ConfigurationError(
                "job.write_retry_limit", f"must be >= 0, got {self.write_retry_limit}",
            )


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScheduleConfig:
    """Fixed-rate trigger settings."""

    period_ms: int = 5000
    overlap_policy: OverlapPolicy = OverlapPolicy.SKIP_IF_RUNNING
    parameters_strategy: ParametersStrategy = ParametersStrategy.NONCE
    max_workers: int = 4

    def __post_init__(self) -> None:
        if self.period_ms <= 0:
            raise ConfigurationError("schedule.period_ms", f"must be > 0, got {self.period_ms}")
        if self.max_workers < 1:
            raise ConfigurationError(
                "schedule.max_workers", f"must be >= 1, got {self.max_workers}",
            )

    @property
    def period_seconds(self) -> float:
        return self.period_ms / 1000


# ---------------------------------------------------------------------------
# Seed data / logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SeedConfig:
    """Synthetic customer generation."""

    record_count: int = 100

    def __post_init__(self) -> None:
        if self.record_count < 0:
            raise ConfigurationError(
                "seed.record_count", f"must be >= 0, got {self.record_count}",
            )


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ConfigurationError("logging.level", f"must be one of {_LOG_LEVELS}")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchConfiguration:
    """Complete configuration of one batch deployment."""

    job: JobConfig = field(default_factory=JobConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    seed: SeedConfig = field(default_factory=SeedConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
