"""Command line interface for generating snakemake unit tests."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from snakemake_unit_tests.cli_utils.params import resolve_params
from snakemake_unit_tests.config import load_config
from snakemake_unit_tests.constants import ALWAYS_EXCLUDED_RULES
from snakemake_unit_tests.dag import DependencyResolver, SolvedRules
from snakemake_unit_tests.emit import WorkspaceEmitter
from snakemake_unit_tests.parsing import SnakemakeFile
from snakemake_unit_tests.report import DiagnosticReport

app = typer.Typer(help="Generate per-rule pytest workspaces from a snakemake run")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: Exception) -> NoReturn:
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main() -> None:
    """snakemake-unit-tests CLI entry point."""
    pass


@app.command("generate")
def generate(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML file with defaults for the other options",
    ),
    snakefile: Optional[Path] = typer.Option(
        None, "--snakefile", "-s", help="Snakefile used to run the pipeline"
    ),
    pipeline_dir: Optional[Path] = typer.Option(
        None,
        "--pipeline-dir",
        "-p",
        help="Top level pipeline directory (default: X for X/workflow/Snakefile)",
    ),
    pipeline_run_dir: Optional[Path] = typer.Option(
        None,
        "--pipeline-run-dir",
        "-r",
        help="Directory snakemake ran in, relative to the pipeline directory",
    ),
    snakemake_log: Optional[Path] = typer.Option(
        None, "--snakemake-log", "-l", help="Log of the run that needs tests"
    ),
    output_test_dir: Optional[Path] = typer.Option(
        None, "--output-test-dir", "-o", help="Top level output directory for tests"
    ),
    inst_dir: Optional[Path] = typer.Option(
        None, "--inst-dir", "-i", help="Directory holding test.py and common.py"
    ),
    exclude_rules: Optional[List[str]] = typer.Option(
        None, "--exclude-rules", "-e", help="Rule to skip (repeatable)"
    ),
    added_files: Optional[List[Path]] = typer.Option(
        None,
        "--added-files",
        "-f",
        help="File, relative to the pipeline directory, added to every workspace",
    ),
    added_directories: Optional[List[Path]] = typer.Option(
        None,
        "--added-directories",
        "-d",
        help="Directory, relative to the pipeline directory, added to every workspace",
    ),
    comparison_exclusions: Optional[List[str]] = typer.Option(
        None,
        "--comparison-exclusions",
        "-x",
        help="File suffix whose contents tests should not compare (repeatable)",
    ),
    update_snakefiles: bool = typer.Option(
        False, "--update-snakefiles", help="Only rewrite the pruned snakefiles"
    ),
    update_added_content: bool = typer.Option(
        False, "--update-added-content", help="Only recopy added files and directories"
    ),
    update_inputs: bool = typer.Option(
        False, "--update-inputs", help="Only restage rule inputs"
    ),
    update_outputs: bool = typer.Option(
        False, "--update-outputs", help="Only restage expected outputs"
    ),
    update_pytest: bool = typer.Option(
        False, "--update-pytest", help="Only rewrite the test and launcher scripts"
    ),
    full_dependencies: Optional[bool] = typer.Option(
        None,
        "--full-dependencies/--direct-dependencies",
        help="Carry every upstream rule instead of only direct producers",
    ),
    probe_missing_rules: Optional[bool] = typer.Option(
        None,
        "--probe-missing-rules/--no-probe-missing-rules",
        help="Run snakemake to find parsed rules it never defines",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """
    Generate unit test workspaces for every rule executed in a snakemake log.

    Update flags select which parts of existing workspaces are rewritten;
    without any of them, everything is.

    Example:
        snakemake-unit-tests generate -l logs/run.log -s workflow/Snakefile
        snakemake-unit-tests generate -c unit_tests.yaml --update-pytest
    """
    _configure_logging(verbose)
    report = DiagnosticReport()
    try:
        params = resolve_params(
            load_config(config),
            snakefile=snakefile,
            pipeline_dir=pipeline_dir,
            pipeline_run_dir=pipeline_run_dir,
            snakemake_log=snakemake_log,
            output_test_dir=output_test_dir,
            inst_dir=inst_dir,
            exclude_rules=exclude_rules or (),
            added_files=added_files or (),
            added_directories=added_directories or (),
            comparison_exclusions=comparison_exclusions or (),
            update_flags={
                "update_snakefiles": update_snakefiles,
                "update_added_content": update_added_content,
                "update_inputs": update_inputs,
                "update_outputs": update_outputs,
                "update_pytest": update_pytest,
            },
            full_dependencies=full_dependencies,
            probe_missing_rules=probe_missing_rules,
        )
        solved = SolvedRules()
        solved.load_file(params.snakemake_log, report)
        workflow = SnakemakeFile()
        workflow.load_everything(
            params.snakefile.name,
            params.snakefile.parent,
            params.exclude_rules,
            report,
        )
        emitted = WorkspaceEmitter(workflow, solved, params, report).emit_tests()
    except (ValueError, RuntimeError, OSError) as exc:
        _fail(exc)

    typer.echo(f"Emitted {len(emitted)} tests into {params.output_test_dir}")
    if report.warnings:
        typer.secho(f"{len(report.warnings)} warnings", fg=typer.colors.YELLOW)


@app.command("blocks")
def blocks(
    snakefile: Path,
    rules_only: bool = typer.Option(
        False, "--rules-only", help="List rule names instead of the flattened source"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Print a snakefile with all resolvable includes expanded in place."""
    _configure_logging(verbose)
    workflow = SnakemakeFile()
    try:
        workflow.load_everything(
            snakefile.name, snakefile.parent, set(ALWAYS_EXCLUDED_RULES)
        )
    except (ValueError, OSError) as exc:
        _fail(exc)

    if rules_only:
        for name in workflow.rule_names():
            typer.echo(name)
        return
    buffer = io.StringIO()
    workflow.print_blocks(buffer)
    typer.echo(buffer.getvalue(), nl=False)


@app.command("recipes")
def recipes(
    snakemake_log: Path,
    full_dependencies: bool = typer.Option(
        False,
        "--full-dependencies",
        help="List every upstream rule instead of the carried dependencies",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """List the recipes of a snakemake log with the rules each depends on."""
    _configure_logging(verbose)
    solved = SolvedRules()
    try:
        solved.load_file(snakemake_log)
    except (ValueError, OSError) as exc:
        _fail(exc)

    if not len(solved):
        typer.echo("No recipes found.")
        return

    resolver = DependencyResolver(solved)
    for index, recipe in enumerate(solved):
        if full_dependencies:
            dependencies = resolver.dependency_closure(index)
        else:
            dependencies = {}
            resolver.aggregate_dependencies(index, dependencies)
        marker = " (checkpoint dependent)" if resolver.is_checkpoint_dependent(index) else ""
        outputs = ", ".join(str(path) for path in recipe.outputs) or "-"
        typer.echo(f"{recipe.rule_name}{marker}: {outputs}")
        for dependency in dependencies.values():
            typer.echo(f"    <- {dependency.rule_name}")


if __name__ == "__main__":  # pragma: no cover
    app()
