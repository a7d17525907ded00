import os
import shutil
import subprocess
import sys
from pathlib import Path
from tempfile import TemporaryDirectory

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import common  # noqa: E402


def test_rule():
    unit_dir = Path(os.environ.get("SNAKEMAKE_UNIT_TESTS_DIR", testdir)) / "unit"
    rule_dir = unit_dir / rulename
    with TemporaryDirectory() as tmpdir:
        workdir = Path(tmpdir) / "workspace"
        shutil.copytree(rule_dir / "workspace", workdir)
        exec_dir = workdir / snakemake_exec_path
        exec_dir.mkdir(parents=True, exist_ok=True)
        subprocess.run(
            [
                "snakemake",
                "--snakefile",
                str(workdir / snakefile_relative_path),
                "--directory",
                str(exec_dir),
                "--cores",
                "1",
                "--forcerun",
                rulename,
                "all",
            ],
            check=True,
        )
        common.OutputChecker(
            rule_dir / "expected", workdir, extra_comparison_exclusions
        ).check()
