from __future__ import annotations

import io
from pathlib import Path

import pytest

from snakemake_unit_tests.emit.scripts import (
    format_exclusion_list,
    report_modified_launcher_script,
    report_modified_test_script,
    report_phony_all_target,
)
from snakemake_unit_tests.parsing.lexical import lexical_parse
from snakemake_unit_tests.parsing.snakefile import SnakemakeFile


def _write_template(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / "inst" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_modified_test_script_has_settings_then_template(tmp_path: Path):
    testdir = tmp_path / "tests"
    unitdir = testdir / "unit"
    unitdir.mkdir(parents=True)
    template = _write_template(tmp_path, "test.py", "interesting stuff goes here\n")

    script = report_modified_test_script(
        unitdir,
        testdir,
        "myrule",
        Path("workflow/Snakefile"),
        Path("."),
        [".docx", ".eps"],
        template,
    )

    assert script == unitdir / "test_myrule.py"
    assert script.read_text().splitlines() == [
        "#!/usr/bin/env python3",
        f"testdir='{testdir}'",
        "rulename='myrule'",
        "snakefile_relative_path='workflow/Snakefile'",
        "snakemake_exec_path='.'",
        "extra_comparison_exclusions=['.docx', '.eps', ]",
        "interesting stuff goes here",
    ]


def test_modified_test_script_requires_template(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        report_modified_test_script(
            tmp_path, tmp_path, "myrule", Path("Snakefile"), Path("."), [], tmp_path / "nope.py"
        )


def test_launcher_binds_test_dir_after_first_line(tmp_path: Path):
    template = _write_template(
        tmp_path, "runner.bash", "#!/usr/bin/env bash\nscript\ncontents\n"
    )
    target_dir = tmp_path / "target"
    target_dir.mkdir()
    test_dir = target_dir / "all_the_tests"

    script = report_modified_launcher_script(target_dir, test_dir, template)
    first = script.read_text()
    report_modified_launcher_script(target_dir, test_dir, template)

    assert script == target_dir / "pytest_runner.bash"
    assert first.splitlines() == [
        "#!/usr/bin/env bash",
        f"SNAKEMAKE_UNIT_TESTS_DIR={test_dir}",
        "script",
        "contents",
    ]
    assert script.read_text() == first


def test_launcher_requires_target_directory(tmp_path: Path):
    template = _write_template(tmp_path, "runner.bash", "script\ncontents\n")

    with pytest.raises(FileNotFoundError):
        report_modified_launcher_script(tmp_path / "target", tmp_path / "tests", template)


def test_launcher_requires_template(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        report_modified_launcher_script(tmp_path, tmp_path / "tests", tmp_path / "nope.bash")


def test_phony_all_target_is_a_parseable_rule():
    out = io.StringIO()

    report_phony_all_target(out, [Path("a.txt"), Path("b/c.txt")])
    (block,) = SnakemakeFile.parse_file(
        lexical_parse(out.getvalue().splitlines()), Path("Snakefile"), 0
    )

    assert out.getvalue() == 'rule all:\n    input:\n        "a.txt",\n        "b/c.txt",\n\n\n'
    assert block.rule_name == "all"
    assert block.named_blocks == {"input": '\n    "a.txt",\n    "b/c.txt",'}


def test_exclusion_list_literal():
    assert format_exclusion_list([]) == "[]"
    assert format_exclusion_list([".pdf"]) == "['.pdf', ]"
