from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import CONFIG_ENV_VAR, DEFAULT_OUTPUT_TEST_DIR, DEFAULT_SNAKEFILE


class UnitTestConfig(BaseModel):
    """Defaults for ``generate``, as read from a YAML config file.

    Keys may be written with hyphens, matching the command line option
    names (``snakemake-log``), or with underscores.
    """

    model_config = ConfigDict(extra="forbid")

    snakefile: Path = DEFAULT_SNAKEFILE
    pipeline_dir: Optional[Path] = None
    pipeline_run_dir: Path = Path(".")
    snakemake_log: Optional[Path] = None
    output_test_dir: Path = DEFAULT_OUTPUT_TEST_DIR
    inst_dir: Optional[Path] = None
    exclude_rules: list[str] = Field(default_factory=list)
    added_files: list[Path] = Field(default_factory=list)
    added_directories: list[Path] = Field(default_factory=list)
    extra_comparison_exclusions: list[str] = Field(default_factory=list)
    update_snakefiles: bool = True
    update_added_content: bool = True
    update_inputs: bool = True
    update_outputs: bool = True
    update_pytest: bool = True
    full_dependencies: bool = False
    probe_missing_rules: bool = False

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {str(key).replace("-", "_"): value for key, value in data.items()}
        return data


def load_config(path: Optional[str | Path] = None) -> UnitTestConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to the
            SNAKEMAKE_UNIT_TESTS_CONFIG env variable. An explicitly requested
            file must exist; without any file, defaults are returned.
    """

    config_path = path or os.getenv(CONFIG_ENV_VAR)
    if not config_path:
        return UnitTestConfig()
    config_path = Path(config_path)
    if not config_path.is_file():
        if path:
            raise FileNotFoundError(f'config file "{config_path}" does not exist')
        return UnitTestConfig()

    with open(config_path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(
                f'input config file "{config_path}" does not conform to yaml syntax'
            ) from exc
    if not isinstance(data, dict):
        raise ValueError(f'input config file "{config_path}" must contain a mapping')
    return UnitTestConfig(**data)


__all__ = ["UnitTestConfig", "load_config"]
