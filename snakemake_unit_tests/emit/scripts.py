"""Instantiation of the pytest and launcher script templates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence, TextIO

from ..constants import LAUNCHER_ENV_VAR, LAUNCHER_SCRIPT_NAME

logger = logging.getLogger(__name__)

TEST_SCRIPT_SHEBANG = "#!/usr/bin/env python3"


def _read_template(template: Path) -> str:
    if not template.is_file():
        raise FileNotFoundError(f'cannot find script template "{template}"')
    return template.read_text(encoding="utf-8")


def _require_directory(directory: Path) -> None:
    if not directory.is_dir():
        raise FileNotFoundError(f'script target directory "{directory}" does not exist')


def format_exclusion_list(extensions: Iterable[str]) -> str:
    """Render ``['.a', '.b', ]``, the literal the test template expects."""

    return "[" + "".join(f"'{extension}', " for extension in extensions) + "]"


def report_modified_test_script(
    parent_dir: Path,
    test_dir: Path,
    rule_name: str,
    snakefile_relative_path: Path,
    pipeline_run_dir: Path,
    extra_exclusions: Sequence[str],
    template: Path,
) -> Path:
    """Write ``<parent_dir>/test_<rule_name>.py`` from ``template``.

    The per-rule settings are written as module level assignments ahead of
    the template body, which is copied through unchanged.
    """

    _require_directory(parent_dir)
    body = _read_template(template)
    target = parent_dir / f"test_{rule_name}.py"
    header = [
        TEST_SCRIPT_SHEBANG,
        f"testdir='{test_dir}'",
        f"rulename='{rule_name}'",
        f"snakefile_relative_path='{snakefile_relative_path}'",
        f"snakemake_exec_path='{pipeline_run_dir}'",
        f"extra_comparison_exclusions={format_exclusion_list(extra_exclusions)}",
    ]
    target.write_text("\n".join(header) + "\n" + body, encoding="utf-8")
    logger.debug(f"wrote test script {target}")
    return target


def report_modified_launcher_script(
    target_dir: Path, test_dir: Path, template: Path
) -> Path:
    """Write the launcher with the test directory bound after its first line."""

    _require_directory(target_dir)
    first, _, rest = _read_template(template).partition("\n")
    target = target_dir / LAUNCHER_SCRIPT_NAME
    target.write_text(
        f"{first}\n{LAUNCHER_ENV_VAR}={test_dir}\n{rest}", encoding="utf-8"
    )
    target.chmod(0o755)
    logger.debug(f"wrote launcher script {target}")
    return target


def report_phony_all_target(out: TextIO, targets: Iterable[Path]) -> None:
    """Write a top level ``rule all`` requesting every path in ``targets``."""

    out.write("rule all:\n    input:\n")
    for path in targets:
        out.write(f'        "{path}",\n')
    out.write("\n\n")


__all__ = [
    "format_exclusion_list",
    "report_modified_launcher_script",
    "report_modified_test_script",
    "report_phony_all_target",
]
