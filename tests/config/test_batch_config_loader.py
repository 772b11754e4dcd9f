"""
Tests for batch_config.loader and batch_config.schema.

Validates the packaged defaults, YAML parsing, unknown-key rejection and
range checks.
"""

from dataclasses import FrozenInstanceError

import pytest
import yaml

from batch_kernel.exceptions import ConfigurationError

from batch_config import (
    DEFAULT_CONFIG_PATH,
    BatchConfiguration,
    JobConfig,
    LoggingConfig,
    ScheduleConfig,
    SeedConfig,
    load_configuration,
    parse_configuration,
)
from batch_config.loader import load_yaml_file
from batch_engine.domain.schedule import ParametersStrategy
from batch_engine.domain.types import OverlapPolicy


# =============================================================================
# Defaults
# =============================================================================


class TestDefaults:
    def test_packaged_file_exists(self):
        assert DEFAULT_CONFIG_PATH.is_file()

    def test_packaged_defaults_match_schema_defaults(self):
        assert load_configuration() == BatchConfiguration()

    def test_default_values(self):
        config = BatchConfiguration()
        assert config.job.name == "customerReportJob"
        assert config.job.chunk_size == 20
        assert config.job.transaction_limit == 5
        assert config.schedule.period_ms == 5000
        assert config.schedule.period_seconds == 5.0
        assert config.schedule.overlap_policy == OverlapPolicy.SKIP_IF_RUNNING
        assert config.schedule.parameters_strategy == ParametersStrategy.NONCE
        assert config.seed.record_count == 100
        assert config.logging.level == "INFO"

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            JobConfig().chunk_size = 5  # type: ignore[misc]


# =============================================================================
# Parsing
# =============================================================================


class TestParseConfiguration:
    def test_empty_document_is_defaults(self):
        assert parse_configuration({}) == BatchConfiguration()

    def test_partial_sections(self):
        config = parse_configuration({
            "job": {"chunk_size": 5},
            "schedule": {"period_ms": 250, "overlap_policy": "queue"},
        })
        assert config.job.chunk_size == 5
        assert config.job.name == "customerReportJob"
        assert config.schedule.period_seconds == 0.25
        assert config.schedule.overlap_policy == OverlapPolicy.QUEUE

    def test_parameters_strategy(self):
        config = parse_configuration({"schedule": {"parameters_strategy": "increment"}})
        assert config.schedule.parameters_strategy == ParametersStrategy.INCREMENT

    def test_logging_level_upper_cased(self):
        assert parse_configuration({"logging": {"level": "debug"}}).logging.level == "DEBUG"

    def test_unknown_section(self):
        with pytest.raises(ConfigurationError, match="unknown keys"):
            parse_configuration({"jobs": {}})

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_configuration({"job": {"chunksize": 5}})
        assert exc_info.value.field_name == "job"

    def test_section_must_be_mapping(self):
        with pytest.raises(ConfigurationError, match="mapping"):
            parse_configuration({"job": [1, 2]})

    @pytest.mark.parametrize("value", ["20", 2.5, True])
    def test_integer_fields_typed(self, value):
        with pytest.raises(ConfigurationError, match="integer"):
            parse_configuration({"job": {"chunk_size": value}})

    def test_invalid_overlap_policy(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_configuration({"schedule": {"overlap_policy": "sometimes"}})
        assert exc_info.value.field_name == "schedule.overlap_policy"

    def test_invalid_parameters_strategy(self):
        with pytest.raises(ConfigurationError):
            parse_configuration({"schedule": {"parameters_strategy": "random"}})


# =============================================================================
# Range checks
# =============================================================================


class TestSchemaValidation:
    @pytest.mark.parametrize(
        ("factory", "field_name"),
        [
            (lambda: JobConfig(chunk_size=0), "job.chunk_size"),
            (lambda: JobConfig(name=""), "job.name"),
            (lambda: JobConfig(chunk_step="taskletStep"), "job.chunk_step"),
            (lambda: JobConfig(transaction_limit=-1), "job.transaction_limit"),
            (lambda: JobConfig(write_retry_limit=-1), "job.write_retry_limit"),
            (lambda: ScheduleConfig(period_ms=0), "schedule.period_ms"),
            (lambda: ScheduleConfig(max_workers=0), "schedule.max_workers"),
            (lambda: SeedConfig(record_count=-1), "seed.record_count"),
            (lambda: LoggingConfig(level="LOUD"), "logging.level"),
        ],
    )
    def test_out_of_range(self, factory, field_name):
        with pytest.raises(ConfigurationError) as exc_info:
            factory()
        assert exc_info.value.field_name == field_name


# =============================================================================
# Files
# =============================================================================


class TestLoadFiles:
    def test_load_from_path(self, tmp_path):
        path = tmp_path / "batch.yaml"
        path.write_text(yaml.safe_dump({"job": {"chunk_size": 7}, "seed": {"record_count": 10}}))
        config = load_configuration(path)
        assert config.job.chunk_size == 7
        assert config.seed.record_count == 10

    def test_load_from_str_path(self, tmp_path):
        path = tmp_path / "batch.yaml"
        path.write_text("job:\n  output_file: report.txt\n")
        assert load_configuration(str(path)).job.output_file == "report.txt"

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_configuration(path) == BatchConfiguration()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_configuration(tmp_path / "missing.yaml")

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_yaml_file(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("job: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_configuration(path)
