"""Shared constants for snakemake_unit_tests."""

from __future__ import annotations

from pathlib import Path

DEFAULT_INST_DIR = Path(__file__).resolve().parent / "inst"
DEFAULT_OUTPUT_TEST_DIR = Path(".tests")
DEFAULT_SNAKEFILE = Path("workflow/Snakefile")

CONFIG_ENV_VAR = "SNAKEMAKE_UNIT_TESTS_CONFIG"

TEST_SCRIPT_TEMPLATE = "test.py"
COMMON_SCRIPT_TEMPLATE = "common.py"
LAUNCHER_SCRIPT_TEMPLATE = "pytest_runner.bash"
LAUNCHER_SCRIPT_NAME = "pytest_runner.bash"
LAUNCHER_ENV_VAR = "SNAKEMAKE_UNIT_TESTS_DIR"

UNIT_TEST_SUBDIR = "unit"
WORKSPACE_SUBDIR = "workspace"
EXPECTED_SUBDIR = "expected"
PROBE_WORKSPACE_SUBDIR = ".probe"

# rule names that never receive tests
ALWAYS_EXCLUDED_RULES = frozenset({"all"})

# sub-blocks emitted first, in this order
LEADING_SUB_BLOCKS = ("input", "output")
# sub-blocks emitted last, in this order
TRAILING_SUB_BLOCKS = ("cwl", "run", "script", "shell", "wrapper")

# keys a snakemake job record may carry in the execution log
KNOWN_LOG_KEYS = frozenset(
    {
        "input",
        "output",
        "log",
        "jobid",
        "wildcards",
        "benchmark",
        "resources",
        "threads",
        "priority",
        "reason",
    }
)
UNRESOLVED_CHECKPOINT_INPUT = "<TBD>"
DUPLICATE_OUTPUT_WARNING = "at least one output file appears multiple times"
