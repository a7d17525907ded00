"""Tests for configuration loading."""

from pathlib import Path

import pytest

from snakemake_unit_tests.config import UnitTestConfig, load_config
from snakemake_unit_tests.constants import CONFIG_ENV_VAR


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
snakemake-log: logs/run.log
exclude-rules:
  - slow_rule
added_files:
  - config/config.yaml
update-pytest: false
"""
    )
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))

    config = load_config()
    assert config.snakemake_log == Path("logs/run.log")
    assert config.exclude_rules == ["slow_rule"]
    assert config.added_files == [Path("config/config.yaml")]
    assert config.update_pytest is False
    assert config.update_inputs is True


def test_defaults_without_config_file(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    config = load_config()
    assert config == UnitTestConfig()
    assert config.output_test_dir == Path(".tests")
    assert config.snakefile == Path("workflow/Snakefile")
    assert config.full_dependencies is False


def test_env_pointing_at_missing_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yaml"))

    assert load_config() == UnitTestConfig()


def test_explicit_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_malformed_yaml_raises(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("exclude_rules: [a, b\n")

    with pytest.raises(ValueError, match="yaml syntax"):
        load_config(config_path)


def test_unknown_key_raises(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("snakefiel: workflow/Snakefile\n")

    with pytest.raises(ValueError):
        load_config(config_path)
