"""
Configuration Loader (``batch_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``batch_config.schema`` dataclasses.

Invariants enforced
-------------------
* Unknown keys are rejected, so a typo never silently falls back to a
  default.
* Every parsed object is a frozen dataclass from ``schema.py``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type or out-of-range value -> ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from batch_kernel.exceptions import ConfigurationError

from batch_config.schema import (
    BatchConfiguration,
    JobConfig,
    LoggingConfig,
    ScheduleConfig,
    SeedConfig,
)
from batch_engine.domain.schedule import ParametersStrategy
from batch_engine.domain.types import OverlapPolicy

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "defaults" / "customer_report.yaml"

_SECTIONS = ("job", "schedule", "seed", "logging")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _check_keys(section: str, data: dict[str, Any], allowed: set[str]) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigurationError(section, f"unknown keys {unknown}")


def _field_names(cls: type) -> set[str]:
    return {f.name for f in fields(cls)}


def _as_int(section: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{section}.{key}", f"expected an integer, got {value!r}")
    return value


def parse_job(data: dict[str, Any]) -> JobConfig:
    """Parse the ``job`` section."""
    _check_keys("job", data, _field_names(JobConfig))
    values = dict(data)
    for key in ("chunk_size", "transaction_limit", "write_retry_limit"):
        if key in values:
            values[key] = _as_int("job", key, values[key])
    for key in ("name", "tasklet_step", "chunk_step", "input_file", "output_file"):
        if key in values:
            values[key] = str(values[key])
    return JobConfig(**values)


def parse_schedule(data: dict[str, Any]) -> ScheduleConfig:
    """Parse the ``schedule`` section."""
    _check_keys("schedule", data, _field_names(ScheduleConfig))
    values = dict(data)
    for key in ("period_ms", "max_workers"):
        if key in values:
            values[key] = _as_int("schedule", key, values[key])
    if "overlap_policy" in values:
        try:
            values["overlap_policy"] = OverlapPolicy(values["overlap_policy"])
        except ValueError:
            raise ConfigurationError(
                "schedule.overlap_policy",
                f"expected one of {[p.value for p in OverlapPolicy]}",
            ) from None
    if "parameters_strategy" in values:
        try:
            values["parameters_strategy"] = ParametersStrategy(values["parameters_strategy"])
        except ValueError:
            raise ConfigurationError(
                "schedule.parameters_strategy",
                f"expected one of {[s.value for s in ParametersStrategy]}",
            ) from None
    return ScheduleConfig(**values)


def parse_seed(data: dict[str, Any]) -> SeedConfig:
    _check_keys("seed", data, _field_names(SeedConfig))
    values = dict(data)
    if "record_count" in values:
        values["record_count"] = _as_int("seed", "record_count", values["record_count"])
    return SeedConfig(**values)


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    _check_keys("logging", data, _field_names(LoggingConfig))
    values = dict(data)
    if "level" in values:
        values["level"] = str(values["level"]).upper()
    return LoggingConfig(**values)


def parse_configuration(data: dict[str, Any]) -> BatchConfiguration:
    """
    Parse a whole configuration document.

    Missing sections take their defaults.

    Raises:
        ConfigurationError: on unknown sections/keys or invalid values.
    """
    _check_keys("<root>", data, set(_SECTIONS))
    for section in _SECTIONS:
        if data.get(section) is not None and not isinstance(data[section], dict):
            raise ConfigurationError(section, "must be a mapping")
    return BatchConfiguration(
        job=parse_job(data.get("job") or {}),
        schedule=parse_schedule(data.get("schedule") or {}),
        seed=parse_seed(data.get("seed") or {}),
        logging=parse_logging(data.get("logging") or {}),
    )


def load_configuration(path: Path | str | None = None) -> BatchConfiguration:
    """Load a configuration file, or the packaged default when ``path`` is None."""
    return parse_configuration(load_yaml_file(Path(path) if path else DEFAULT_CONFIG_PATH))
