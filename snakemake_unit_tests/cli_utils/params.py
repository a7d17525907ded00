"""Merge config file values with command line overrides and validate them."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from pydantic import BaseModel, Field

from ..config import UnitTestConfig
from ..constants import (
    ALWAYS_EXCLUDED_RULES,
    COMMON_SCRIPT_TEMPLATE,
    DEFAULT_INST_DIR,
    LAUNCHER_SCRIPT_TEMPLATE,
    TEST_SCRIPT_TEMPLATE,
    UNIT_TEST_SUBDIR,
)
from .fs import check_and_fix_dir, check_regular_file

logger = logging.getLogger(__name__)

UPDATE_FLAGS = (
    "update_snakefiles",
    "update_added_content",
    "update_inputs",
    "update_outputs",
    "update_pytest",
)


class Params(BaseModel):
    """Validated settings for one ``generate`` run."""

    snakefile: Path
    pipeline_top_dir: Path
    pipeline_run_dir: Path = Path(".")
    snakemake_log: Path
    output_test_dir: Path
    inst_dir: Path = DEFAULT_INST_DIR
    exclude_rules: set[str] = Field(default_factory=lambda: set(ALWAYS_EXCLUDED_RULES))
    added_files: list[Path] = Field(default_factory=list)
    added_directories: list[Path] = Field(default_factory=list)
    comparison_exclusions: list[str] = Field(default_factory=list)
    update_snakefiles: bool = True
    update_added_content: bool = True
    update_inputs: bool = True
    update_outputs: bool = True
    update_pytest: bool = True
    full_dependencies: bool = False
    probe_missing_rules: bool = False

    @property
    def snakefile_relative_path(self) -> Path:
        snakefile = self.snakefile.resolve()
        top_dir = self.pipeline_top_dir.resolve()
        try:
            return snakefile.relative_to(top_dir)
        except ValueError as exc:
            raise ValueError(
                f'snakefile "{self.snakefile}" is not inside pipeline directory '
                f'"{self.pipeline_top_dir}"'
            ) from exc

    @property
    def unit_test_dir(self) -> Path:
        return self.output_test_dir / UNIT_TEST_SUBDIR

    @property
    def test_script_template(self) -> Path:
        return self.inst_dir / TEST_SCRIPT_TEMPLATE

    @property
    def common_script_template(self) -> Path:
        return self.inst_dir / COMMON_SCRIPT_TEMPLATE

    @property
    def launcher_script_template(self) -> Path:
        return self.inst_dir / LAUNCHER_SCRIPT_TEMPLATE


def _pick(cli_value, config_value):
    return config_value if cli_value is None else cli_value


def resolve_update_flags(
    config: UnitTestConfig, requested: Optional[Mapping[str, bool]]
) -> dict[str, bool]:
    """Explicit update flags select only those steps; none selects the config."""

    requested = {name: bool((requested or {}).get(name)) for name in UPDATE_FLAGS}
    if any(requested.values()):
        return requested
    return {name: getattr(config, name) for name in UPDATE_FLAGS}


def resolve_params(
    config: UnitTestConfig,
    *,
    snakefile: Optional[Path] = None,
    pipeline_dir: Optional[Path] = None,
    pipeline_run_dir: Optional[Path] = None,
    snakemake_log: Optional[Path] = None,
    output_test_dir: Optional[Path] = None,
    inst_dir: Optional[Path] = None,
    exclude_rules: Iterable[str] = (),
    added_files: Iterable[Path] = (),
    added_directories: Iterable[Path] = (),
    comparison_exclusions: Iterable[str] = (),
    update_flags: Optional[Mapping[str, bool]] = None,
    full_dependencies: Optional[bool] = None,
    probe_missing_rules: Optional[bool] = None,
) -> Params:
    """Build :class:`Params` from ``config`` and command line values.

    Scalar options replace config values; list options extend them.
    """

    snakefile = check_regular_file(
        Path(_pick(snakefile, config.snakefile)), "snakefile"
    )

    top_dir = _pick(pipeline_dir, config.pipeline_dir)
    if top_dir is None:
        # X for X/workflow/Snakefile
        top_dir = snakefile.parent.parent
    top_dir = check_and_fix_dir(Path(top_dir), "pipeline-dir")
    run_dir = check_and_fix_dir(
        Path(_pick(pipeline_run_dir, config.pipeline_run_dir)),
        "pipeline-run-dir",
        prefix=top_dir,
    )

    inst = check_and_fix_dir(
        Path(_pick(inst_dir, config.inst_dir) or DEFAULT_INST_DIR), "inst-dir"
    )
    try:
        check_regular_file(Path(TEST_SCRIPT_TEMPLATE), "inst-dir/test.py", inst)
        check_regular_file(Path(COMMON_SCRIPT_TEMPLATE), "inst-dir/common.py", inst)
    except FileNotFoundError as exc:
        raise FileNotFoundError(
            f'inst directory "{inst}" exists, but does not contain both '
            "'test.py' and 'common.py', required infrastructure files from "
            "snakemake_unit_tests"
        ) from exc

    log = _pick(snakemake_log, config.snakemake_log)
    if log is None:
        raise ValueError("no snakemake log specified (--snakemake-log/-l)")
    log = check_regular_file(Path(log), "snakemake-log")

    files = [*config.added_files, *(Path(item) for item in added_files)]
    for item in files:
        check_regular_file(item, "added-files", top_dir)
    directories = [
        check_and_fix_dir(Path(item), "added-directories", top_dir)
        for item in [*config.added_directories, *added_directories]
    ]

    excluded = set(config.exclude_rules) | set(exclude_rules) | ALWAYS_EXCLUDED_RULES
    flags = resolve_update_flags(config, update_flags)
    params = Params(
        snakefile=snakefile,
        pipeline_top_dir=top_dir,
        pipeline_run_dir=run_dir,
        snakemake_log=log,
        output_test_dir=Path(_pick(output_test_dir, config.output_test_dir)),
        inst_dir=inst,
        exclude_rules=excluded,
        added_files=files,
        added_directories=directories,
        comparison_exclusions=[
            *config.extra_comparison_exclusions,
            *comparison_exclusions,
        ],
        full_dependencies=_pick(full_dependencies, config.full_dependencies),
        probe_missing_rules=_pick(probe_missing_rules, config.probe_missing_rules),
        **flags,
    )
    # fail early if the snakefile lives outside the pipeline directory
    logger.debug(f"snakefile relative path: {params.snakefile_relative_path}")
    return params


__all__ = ["Params", "UPDATE_FLAGS", "resolve_params", "resolve_update_flags"]
