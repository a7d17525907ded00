from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from snakemake_unit_tests.cli import app


def _write_workflow(tmp_path: Path) -> Path:
    (tmp_path / "rules").mkdir()
    (tmp_path / "rules" / "steps.smk").write_text(
        'rule a:\n    output: "a.txt"\n\nrule b:\n    input: "a.txt"\n    output: "b.txt"\n'
    )
    snakefile = tmp_path / "Snakefile"
    snakefile.write_text('include: "rules/steps.smk"\n')
    return snakefile


def _write_log(tmp_path: Path) -> Path:
    log = tmp_path / "run.log"
    log.write_text(
        "[Mon Jun 50 14:65:00 2022]\n"
        "rule a:\n"
        "    output: a.txt\n"
        "    jobid: 1\n"
        "\n"
        "[Mon Jun 50 14:65:01 2022]\n"
        "rule b:\n"
        "    input: a.txt\n"
        "    output: b.txt\n"
        "    jobid: 2\n"
    )
    return log


def test_blocks_prints_flattened_source(tmp_path: Path):
    snakefile = _write_workflow(tmp_path)

    runner = CliRunner()
    result = runner.invoke(app, ["blocks", str(snakefile)])
    assert (
        result.exit_code == 0
    ), f"Command failed with exit code {result.exit_code}. Output: {result.output}"
    assert "rule a:" in result.stdout
    assert "rule b:" in result.stdout
    assert "include:" not in result.stdout


def test_blocks_rules_only(tmp_path: Path):
    snakefile = _write_workflow(tmp_path)

    result = CliRunner().invoke(app, ["blocks", str(snakefile), "--rules-only"])
    assert result.exit_code == 0, result.output
    assert "a\nb\n" in result.stdout
    assert "rule a:" not in result.stdout


def test_blocks_reports_missing_include(tmp_path: Path):
    snakefile = tmp_path / "Snakefile"
    snakefile.write_text('include: "missing.smk"\n')

    result = CliRunner().invoke(app, ["blocks", str(snakefile)])
    assert result.exit_code == 1
    assert "missing.smk" in result.output


def test_recipes_lists_dependencies(tmp_path: Path):
    log = _write_log(tmp_path)

    result = CliRunner().invoke(app, ["recipes", str(log)])
    assert result.exit_code == 0, result.output
    assert "a: a.txt" in result.stdout
    assert "b: b.txt" in result.stdout
    assert "    <- a" in result.stdout


def test_generate_without_log_fails(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("SNAKEMAKE_UNIT_TESTS_CONFIG", raising=False)
    snakefile = _write_workflow(tmp_path)

    result = CliRunner().invoke(app, ["generate", "-s", str(snakefile)])
    assert result.exit_code == 1
    assert "no snakemake log specified" in result.output
