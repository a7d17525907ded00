"""Recipes recovered from a snakemake execution log."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Optional

from pydantic import BaseModel, Field

from ..constants import (
    DUPLICATE_OUTPUT_WARNING,
    KNOWN_LOG_KEYS,
    UNRESOLVED_CHECKPOINT_INPUT,
)
from ..parsing.lexical import split_comma_list
from ..report import DiagnosticReport

logger = logging.getLogger(__name__)

_SECTION_HEADER = re.compile(
    r"^(?P<local>local)?(?P<keyword>rule|checkpoint)\s+(?P<name>\w+)\s*:\s*$"
)
_SECTION_ENTRY = re.compile(r"^\s+(?P<key>\w+)\s*:\s*(?P<value>.*)$")


class Recipe(BaseModel):
    """One executed job: a rule applied to concrete files."""

    rule_name: str
    inputs: list[Path] = Field(default_factory=list)
    outputs: list[Path] = Field(default_factory=list)
    log: Optional[str] = None
    is_checkpoint: bool = False
    checkpoint_dependent: bool = False


class SolvedRules:
    """Recipes in log order, plus a lookup from output file to producer.

    Recipes are referenced by their position in :attr:`recipes`.
    """

    def __init__(self) -> None:
        self.recipes: list[Recipe] = []
        self.output_lookup: dict[Path, int] = {}
        self.duplicated_outputs: list[Path] = []

    def __len__(self) -> int:
        return len(self.recipes)

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self.recipes)

    def __getitem__(self, index: int) -> Recipe:
        return self.recipes[index]

    def add_recipe(self, recipe: Recipe) -> int:
        """Store ``recipe`` and register it as producer of its outputs.

        A later producer of an already known output replaces the earlier one.
        """

        index = len(self.recipes)
        self.recipes.append(recipe)
        for output in recipe.outputs:
            previous = self.output_lookup.get(output)
            if previous is not None:
                logger.debug(
                    f"output '{output}' of rule '{recipe.rule_name}' was already "
                    f"produced by rule '{self.recipes[previous].rule_name}'"
                )
                self.duplicated_outputs.append(output)
            self.output_lookup[output] = index
        return index

    def producer_of(self, path: Path) -> Optional[int]:
        return self.output_lookup.get(Path(path))

    def load_file(
        self, path: Path | str, report: Optional[DiagnosticReport] = None
    ) -> None:
        """Parse the job records of a snakemake log (dry run or real run)."""

        path = Path(path)
        report = report or DiagnosticReport()
        if not path.is_file():
            raise FileNotFoundError(f'cannot open snakemake log "{path}"')

        duplicates_before = len(self.duplicated_outputs)
        current: Optional[Recipe] = None
        with path.open(encoding="utf-8") as handle:
            for number, raw in enumerate(handle, start=1):
                line = raw.rstrip()
                header = _SECTION_HEADER.match(line)
                if header:
                    if current is not None:
                        self.add_recipe(current)
                    current = Recipe(
                        rule_name=header.group("name"),
                        is_checkpoint=header.group("keyword") == "checkpoint",
                    )
                    continue
                if current is None:
                    continue
                entry = _SECTION_ENTRY.match(line)
                if entry is None:
                    self.add_recipe(current)
                    current = None
                    continue
                self._apply_entry(current, entry, f"{path}:{number}", report)
        if current is not None:
            self.add_recipe(current)

        logger.info(f"loaded {len(self.recipes)} recipes from {path}")
        if len(self.duplicated_outputs) > duplicates_before:
            report.warn(
                f"{DUPLICATE_OUTPUT_WARNING} in the log; the last rule listed "
                "as producing a file is treated as its source"
            )

    @staticmethod
    def _apply_entry(
        recipe: Recipe, entry: re.Match, location: str, report: DiagnosticReport
    ) -> None:
        key = entry.group("key")
        value = entry.group("value").strip()
        if key == "input":
            if value != UNRESOLVED_CHECKPOINT_INPUT:
                recipe.inputs = [Path(item) for item in split_comma_list(value)]
        elif key == "output":
            recipe.outputs = [Path(item) for item in split_comma_list(value)]
        elif key == "log":
            recipe.log = value
        elif key not in KNOWN_LOG_KEYS:
            report.warn(
                f"{location}: unrecognized entry '{key}' in log record for rule "
                f"'{recipe.rule_name}', skipping"
            )


__all__ = ["Recipe", "SolvedRules"]
