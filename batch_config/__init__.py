"""
batch_config -- YAML configuration for batch deployments.

Public API:
    load_configuration(path=None) -> BatchConfiguration

With no path the packaged ``defaults/customer_report.yaml`` is loaded.
"""

from batch_config.loader import (
    DEFAULT_CONFIG_PATH,
    load_configuration,
    parse_configuration,
)
from batch_config.schema import (
    BatchConfiguration,
    JobConfig,
    LoggingConfig,
    ScheduleConfig,
    SeedConfig,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "BatchConfiguration",
    "JobConfig",
    "LoggingConfig",
    "ScheduleConfig",
    "SeedConfig",
    "load_configuration",
    "parse_configuration",
]
