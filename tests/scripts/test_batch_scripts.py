"""Tests for scripts/seed_data.py and scripts/run_scheduler.py."""

import importlib.util
from pathlib import Path

import pytest
import yaml

from batch_modules.customer_report import load_customers

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"


def _load_script(name: str):
    module_spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def config_file(tmp_path) -> Path:
    path = tmp_path / "batch.yaml"
    path.write_text(yaml.safe_dump({
        "job": {
            "input_file": str(tmp_path / "database.yaml"),
            "output_file": str(tmp_path / "output.txt"),
        },
        "schedule": {"period_ms": 60_000},
        "seed": {"record_count": 12},
    }))
    return path


@pytest.fixture
def malformed_config(tmp_path) -> Path:
    path = tmp_path / "broken.yaml"
    path.write_text("job: [unclosed\n")
    return path


class TestSeedData:
    def test_explicit_count_and_output(self, tmp_path, capsys):
        output = tmp_path / "customers.yaml"
        assert _load_script("seed_data").main(["--count", "10", "--output", str(output)]) == 0
        assert len(load_customers(output)) == 10
        assert "Wrote 10 customers" in capsys.readouterr().out

    def test_count_from_config(self, tmp_path, config_file):
        assert _load_script("seed_data").main(["--config", str(config_file)]) == 0
        assert len(load_customers(tmp_path / "database.yaml")) == 12

    def test_negative_count(self, tmp_path):
        code = _load_script("seed_data").main(
            ["--count", "-1", "--output", str(tmp_path / "x.yaml")]
        )
        assert code == 2

    def test_bad_config(self, tmp_path, capsys):
        bad = tmp_path / "bad.yaml"
        bad.write_text("job:\n  chunk_size: 0\n")
        assert _load_script("seed_data").main(["--config", str(bad)]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_malformed_yaml_config(self, malformed_config, capsys):
        assert _load_script("seed_data").main(["--config", str(malformed_config)]) == 2
        assert "Configuration error" in capsys.readouterr().err


class TestRunScheduler:
    def test_once_with_seed(self, tmp_path, config_file, capsys):
        code = _load_script("run_scheduler").main(["--config", str(config_file), "--seed", "--once"])
        assert code == 0
        assert len(load_customers(tmp_path / "database.yaml")) == 12
        assert "completed" in capsys.readouterr().out

    def test_once_without_input_fails(self, config_file):
        assert _load_script("run_scheduler").main(["--config", str(config_file), "--once"]) == 1

    def test_duration(self, tmp_path, config_file):
        code = _load_script("run_scheduler").main(
            ["--config", str(config_file), "--seed", "--duration", "0.5"]
        )
        assert code == 0
        assert (tmp_path / "output.txt").exists()

    def test_missing_config(self, tmp_path):
        assert _load_script("run_scheduler").main(["--config", str(tmp_path / "nope.yaml")]) == 2

    def test_malformed_yaml_config(self, malformed_config, capsys):
        code = _load_script("run_scheduler").main(["--config", str(malformed_config), "--once"])
        assert code == 2
        assert "Configuration error" in capsys.readouterr().err
