"""Per-rule test workspace synthesis."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Optional

from ..cli_utils.params import Params
from ..constants import (
    COMMON_SCRIPT_TEMPLATE,
    EXPECTED_SUBDIR,
    PROBE_WORKSPACE_SUBDIR,
    WORKSPACE_SUBDIR,
)
from ..dag.dependencies import DependencyMap, DependencyResolver, find_missing_rules
from ..dag.solved_rules import Recipe, SolvedRules
from ..parsing.snakefile import SnakemakeFile
from ..report import DiagnosticReport
from .scripts import (
    report_modified_launcher_script,
    report_modified_test_script,
    report_phony_all_target,
)

logger = logging.getLogger(__name__)


class WorkspaceEmitter:
    """Writes one self-contained test workspace per executed rule.

    Layout under ``params.output_test_dir``::

        pytest_runner.bash
        unit/common.py
        unit/test_<rule>.py
        unit/<rule>/workspace/<snakefile relative path>
        unit/<rule>/workspace/<run dir>/<staged inputs>
        unit/<rule>/expected/<run dir>/<expected outputs>
    """

    def __init__(
        self,
        snakefile: SnakemakeFile,
        solved: SolvedRules,
        params: Params,
        report: Optional[DiagnosticReport] = None,
    ) -> None:
        self.snakefile = snakefile
        self.solved = solved
        self.params = params
        self.report = report or DiagnosticReport()
        self.resolver = DependencyResolver(solved)

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------
    def emit_tests(self) -> list[str]:
        """Create workspaces for every testable rule, in log order.

        Returns the names of the rules that received a test.
        """

        params = self.params
        params.unit_test_dir.mkdir(parents=True, exist_ok=True)
        if params.probe_missing_rules:
            params.exclude_rules.update(self.probe_missing_rules())

        emitted: list[str] = []
        skipped: set[str] = set()
        for index, recipe in enumerate(self.solved):
            if recipe.rule_name in params.exclude_rules:
                skipped.add(recipe.rule_name)
                continue
            if recipe.rule_name in emitted:
                continue
            self.create_workspace(index)
            emitted.append(recipe.rule_name)

        if params.update_pytest:
            shutil.copy2(
                params.common_script_template,
                params.unit_test_dir / COMMON_SCRIPT_TEMPLATE,
            )
            report_modified_launcher_script(
                params.output_test_dir,
                params.output_test_dir.resolve(),
                params.launcher_script_template,
            )

        self.report.note(f"tests emitted: {len(emitted)}")
        self.report.note(f"rules skipped: {len(skipped)}")
        return emitted

    def collect_dependencies(self, index: int) -> DependencyMap:
        if self.params.full_dependencies:
            return self.resolver.dependency_closure(index, full_transitive=True)
        target: DependencyMap = {}
        self.resolver.aggregate_dependencies(index, target)
        return target

    def create_workspace(self, index: int) -> Path:
        """Build the test workspace for recipe ``index``; return its directory."""

        params = self.params
        recipe = self.solved[index]
        rule_dir = params.unit_test_dir / recipe.rule_name
        workspace = rule_dir / WORKSPACE_SUBDIR
        expected = rule_dir / EXPECTED_SUBDIR
        dependencies = self.collect_dependencies(index)
        logger.info(
            f"emitting test for rule '{recipe.rule_name}' "
            f"with {len(dependencies)} dependencies"
        )

        workspace.mkdir(parents=True, exist_ok=True)
        if params.update_snakefiles:
            self.emit_snakefile(workspace, recipe, dependencies)
        if params.update_added_content:
            self.copy_contents(
                params.added_files, params.pipeline_top_dir, workspace, recipe.rule_name
            )
            self.copy_contents(
                params.added_directories,
                params.pipeline_top_dir,
                workspace,
                recipe.rule_name,
            )

        run_source = params.pipeline_top_dir / params.pipeline_run_dir
        if params.update_inputs:
            staged = dict.fromkeys(recipe.inputs)
            for dependency in dependencies.values():
                staged.update(dict.fromkeys(dependency.outputs))
            self.copy_contents(
                staged, run_source, workspace / params.pipeline_run_dir, recipe.rule_name
            )
        if params.update_outputs:
            self.copy_contents(
                recipe.outputs,
                run_source,
                expected / params.pipeline_run_dir,
                recipe.rule_name,
            )
        if params.update_pytest:
            report_modified_test_script(
                params.unit_test_dir,
                params.output_test_dir.resolve(),
                recipe.rule_name,
                params.snakefile_relative_path,
                params.pipeline_run_dir,
                params.comparison_exclusions,
                params.test_script_template,
            )
        return rule_dir

    # ------------------------------------------------------------------
    # Pieces
    # ------------------------------------------------------------------
    def emit_snakefile(
        self, workspace: Path, recipe: Recipe, dependencies: DependencyMap
    ) -> Path:
        """Write the pruned snakefile for ``recipe`` into ``workspace``."""

        target = workspace / self.params.snakefile_relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        rule_names = [recipe.rule_name]
        rule_names.extend(dependency.rule_name for dependency in dependencies.values())
        outputs = [
            output
            for dependency in dependencies.values()
            for output in dependency.outputs
        ]
        outputs.extend(recipe.outputs)
        with target.open("w", encoding="utf-8") as out:
            self.snakefile.report_rules(rule_names, out)
            report_phony_all_target(out, dict.fromkeys(outputs))
        return target

    def copy_contents(
        self,
        contents: Iterable[Path],
        source_prefix: Path,
        target_prefix: Path,
        rule_name: str,
    ) -> None:
        """Copy files or directories, keeping their paths relative to the prefixes."""

        for item in contents:
            item = Path(item)
            if item.is_absolute():
                self.report.warn(
                    f"rule '{rule_name}' references absolute path '{item}', "
                    "which cannot be staged in a test workspace"
                )
                continue
            source = source_prefix / item
            destination = target_prefix / item
            if source.is_dir():
                shutil.copytree(source, destination, dirs_exist_ok=True)
            elif source.is_file():
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, destination)
            else:
                raise FileNotFoundError(
                    f'cannot find "{source}" required by rule "{rule_name}"'
                )

    # ------------------------------------------------------------------
    # Missing rule probe
    # ------------------------------------------------------------------
    @property
    def probe_workspace(self) -> Path:
        return self.params.output_test_dir / PROBE_WORKSPACE_SUBDIR

    def create_empty_workspace(self) -> Path:
        params = self.params
        self.remove_empty_workspace()
        workspace = self.probe_workspace
        (workspace / params.pipeline_run_dir).mkdir(parents=True, exist_ok=True)
        self.copy_contents(
            params.added_files, params.pipeline_top_dir, workspace, "probe"
        )
        self.copy_contents(
            params.added_directories, params.pipeline_top_dir, workspace, "probe"
        )
        return workspace

    def remove_empty_workspace(self) -> None:
        if self.probe_workspace.exists():
            shutil.rmtree(self.probe_workspace)

    def probe_missing_rules(self) -> set[str]:
        """Ask snakemake which parsed rules do not exist once it evaluates the workflow.

        Rules defined under conditions that evaluate false are parsed here but
        never registered by snakemake, so tests for them cannot run.
        """

        params = self.params
        workspace = self.create_empty_workspace()
        try:
            snakefile = workspace / params.snakefile_relative_path
            snakefile.parent.mkdir(parents=True, exist_ok=True)
            with snakefile.open("w", encoding="utf-8") as out:
                self.snakefile.print_blocks(out)
                self.snakefile.report_rule_probes(out)
            cmd = [
                "snakemake",
                "--list-rules",
                "--snakefile",
                str(snakefile),
                "--directory",
                str(workspace / params.pipeline_run_dir),
            ]
            logger.debug(f"running {' '.join(cmd)}")
            result = subprocess.run(cmd, capture_output=True, text=True)
            missing: set[str] = set()
            find_missing_rules(
                (result.stdout + result.stderr).splitlines(), missing
            )
            if result.returncode != 0 and not missing:
                raise RuntimeError(
                    f"snakemake exited with code {result.returncode} while "
                    f"checking rule definitions: {result.stderr.strip()}"
                )
        finally:
            self.remove_empty_workspace()

        for name in sorted(missing):
            self.report.exclude(name, "not defined when snakemake evaluates the workflow")
        return missing


__all__ = ["WorkspaceEmitter"]
