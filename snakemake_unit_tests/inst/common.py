"""Output comparison shared by generated snakemake unit tests."""

from __future__ import annotations

import filecmp
import os
from pathlib import Path
from typing import Iterable

DEFAULT_COMPARISON_EXCLUSIONS = (".log",)


class OutputChecker:
    """Compare the files a test run produced against the recorded outputs.

    Every file under ``expected_path`` must exist at the same relative path
    under ``workdir``. Files whose suffix is listed in ``exclusions`` only
    have to exist; all others must be byte identical.
    """

    def __init__(
        self,
        expected_path: Path,
        workdir: Path,
        exclusions: Iterable[str] = (),
    ) -> None:
        self.expected_path = Path(expected_path)
        self.workdir = Path(workdir)
        self.exclusions = tuple(DEFAULT_COMPARISON_EXCLUSIONS) + tuple(exclusions)

    def expected_files(self) -> list[Path]:
        return sorted(
            (Path(path) / name).relative_to(self.expected_path)
            for path, _, files in os.walk(self.expected_path)
            for name in files
        )

    def check(self) -> None:
        missing = []
        different = []
        for relative in self.expected_files():
            generated = self.workdir / relative
            if not generated.is_file():
                missing.append(str(relative))
                continue
            if relative.name.endswith(self.exclusions):
                continue
            if not filecmp.cmp(generated, self.expected_path / relative, shallow=False):
                different.append(str(relative))
        if missing or different:
            lines = [f"missing: {name}" for name in missing]
            lines.extend(f"differs: {name}" for name in different)
            raise AssertionError("unexpected test outputs:\n" + "\n".join(lines))
