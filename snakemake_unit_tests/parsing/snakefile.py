"""Include resolution and rule inheritance over a whole snakemake source tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, MutableSet, Optional, Sequence, TextIO

from ..report import DiagnosticReport
from .entities import Block, BlockKind, ResolutionStatus
from .lexical import lexical_parse
from .rule_block import (
    load_content_block,
    print_contents,
    print_placeholder,
    report_rulesdot_rules,
)

logger = logging.getLogger(__name__)

_DUPLICATE_RULE_NOTE = (
    "multiple entries in unconditional logic are not necessarily problematic: "
    "infrastructure logic is not interpreted, so if conditional logic selects "
    "between different definitions of a rule, tests for it would be "
    "unreliable. the simplest fix is to use unique rule names, even in "
    "mutually exclusive included files"
)
_LEFTOVER_INCLUDE_NOTE = (
    "if the above are actual include directives, they cannot be resolved "
    "statically. make sure all 'include:' directives operate directly on "
    "string literals (not variables) and are not wrapped in single line "
    "conditional statements"
)


class SnakemakeFile:
    """A snakemake workflow flattened into one ordered sequence of blocks.

    Block order is load order: each resolved include directive is replaced,
    in place, by the blocks of the file it names.
    """

    def __init__(self, blocks: Optional[Iterable[Block]] = None) -> None:
        self._blocks: list[Block] = list(blocks or [])
        self._loaded_files: set[Path] = set()

    @property
    def blocks(self) -> list[Block]:
        return self._blocks

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load_everything(
        self,
        filename: Path | str,
        base_dir: Path | str,
        exclude_rules: Optional[MutableSet[str]],
        report: Optional[DiagnosticReport] = None,
    ) -> None:
        """Load ``filename`` and everything it includes, then validate.

        ``exclude_rules`` is extended with the names of rules whose
        definitions cannot be resolved statically.
        """

        if exclude_rules is None:
            raise ValueError("null exclude_rules provided to load_everything")
        report = report or DiagnosticReport()

        self._blocks = [Block(code_chunk=[f'include: "{filename}"'])]
        self._loaded_files = set()
        self.resolve_includes(Path(base_dir), report)
        self.detect_known_issues(exclude_rules, report)
        self.resolve_derived_rules()

    def resolve_includes(
        self, base_dir: Path, report: Optional[DiagnosticReport] = None
    ) -> None:
        """Splice included files into the block sequence until none remain."""

        report = report or DiagnosticReport()
        while True:
            index = self._next_unresolved_include()
            if index is None:
                return
            include = self._blocks[index]
            if not include.has_literal_include_target():
                include.resolution = (
                    ResolutionStatus.RESOLUTION_REQUIRES_PYTHON_INTERPRETATION
                )
                logger.debug(
                    f"include on expression left unresolved: {include.code_chunk[0].strip()}"
                )
                continue

            path = base_dir / include.get_recursive_filename()
            key = path.resolve()
            if key in self._loaded_files:
                include.resolution = ResolutionStatus.RESOLVED_NOT_INCLUDED
                report.note(f"multiple includes of {path} ignored")
                self._blocks[index : index + 1] = _empty_include_replacement(include)
                continue

            logger.info(f'found include directive, adding "{path}"')
            lines = lexical_parse(self.load_lines(path))
            children = self.parse_file(lines, path, include.total_indentation)
            include.resolution = ResolutionStatus.RESOLVED_INCLUDED
            include.resolved_included_filename = path
            self._loaded_files.add(key)
            self._blocks[index : index + 1] = children or _empty_include_replacement(
                include
            )

    def _next_unresolved_include(self) -> Optional[int]:
        for index, block in enumerate(self._blocks):
            if (
                block.kind is BlockKind.INCLUDE
                and block.resolution is ResolutionStatus.UNRESOLVED
            ):
                return index
        return None

    @staticmethod
    def load_lines(path: Path) -> list[str]:
        if not path.is_file():
            raise FileNotFoundError(f'cannot open snakemake file "{path}"')
        return path.read_text(encoding="utf-8").splitlines()

    @staticmethod
    def parse_file(
        lines: Sequence[str], filename: Path, global_indentation: int
    ) -> list[Block]:
        """Split normalized ``lines`` into blocks, without following includes."""

        blocks: list[Block] = []
        cursor = 0
        while cursor < len(lines):
            block, cursor = load_content_block(
                lines, filename, global_indentation, cursor
            )
            if block is not None:
                blocks.append(block)
        return blocks

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def detect_known_issues(
        self,
        exclude_rules: Optional[MutableSet[str]],
        report: Optional[DiagnosticReport] = None,
    ) -> None:
        """Flag leftover includes and conflicting duplicate rule definitions."""

        if exclude_rules is None:
            raise ValueError("null exclude_rules provided to detect_known_issues")
        report = report or DiagnosticReport()

        aggregated: dict[str, list[Block]] = {}
        leftover_includes: list[str] = []
        for block in self._blocks:
            kind = block.kind
            if kind.is_rule:
                aggregated.setdefault(block.rule_name, []).append(block)
            elif kind in (BlockKind.CODE, BlockKind.INCLUDE):
                last_line = block.code_chunk[-1]
                if (
                    "include:" in last_line
                    and block.resolution is not ResolutionStatus.RESOLVED_INCLUDED
                ):
                    leftover_includes.append(last_line.strip())

        duplicated = [name for name, defs in aggregated.items() if len(defs) > 1]
        unresolvable: list[str] = []
        for name in duplicated:
            first, *others = aggregated[name]
            if any(other != first for other in others) and name not in exclude_rules:
                exclude_rules.add(name)
                unresolvable.append(name)
                report.exclude(name, "duplicate definitions with incompatible content")

        report.note("snakefile load summary")
        report.note(f"total loaded candidate rules: {len(aggregated)}")
        report.note(
            f"  of those rules, {len(duplicated)} had multiple entries in "
            "unconditional logic"
        )
        if duplicated:
            report.note(_DUPLICATE_RULE_NOTE)
        if unresolvable:
            report.warn(
                f"of these duplicate rules, {len(unresolvable)} had incompatible "
                f"duplicate content and are unsupported: {', '.join(unresolvable)}"
            )
        if leftover_includes:
            report.warn(
                "possible unresolved include statements detected: "
                + "; ".join(leftover_includes)
            )
            report.note(_LEFTOVER_INCLUDE_NOTE)

    def resolve_derived_rules(self) -> None:
        """Copy sub-blocks from base rules into rules derived from them."""

        # TODO: follow chains of derived rules once base rules may themselves be derived
        for block in self._blocks:
            if block.kind is not BlockKind.DERIVED_RULE or block.inheritance_resolved:
                continue
            base = next(
                (
                    candidate
                    for candidate in self._blocks
                    if candidate is not block
                    and candidate.rule_name == block.base_rule_name
                ),
                None,
            )
            if base is None:
                raise ValueError(
                    f'derived rule "{block.rule_name}" requested base rule '
                    f'"{block.base_rule_name}", which could not be found in '
                    "available snakefiles"
                )
            for name, body in base.named_blocks.items():
                block.offer_base_rule_contents(base.rule_name, name, body)
            block.is_checkpoint = block.is_checkpoint or base.is_checkpoint
            block.inheritance_resolved = True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def rule_names(self) -> list[str]:
        names = (block.rule_name for block in self._blocks if block.kind.is_rule)
        return list(dict.fromkeys(names))

    def find_rule(self, rule_name: str) -> Optional[Block]:
        for block in self._blocks:
            if block.kind.is_rule and block.rule_name == rule_name:
                return block
        return None

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------
    def print_blocks(self, out: TextIO) -> None:
        for block in self._blocks:
            print_contents(block, out)

    def report_rules(self, rule_names: Iterable[str], out: TextIO) -> None:
        """Write all code plus the named rules; other rules become ``pass``."""

        wanted = list(dict.fromkeys(rule_names))
        available = set(self.rule_names())
        for name in wanted:
            if name not in available:
                raise ValueError(
                    "unable to locate log requested rule in scanned snakefiles: "
                    f'"{name}"'
                )
        selected = set(wanted)
        for block in self._blocks:
            if block.kind.is_rule and block.rule_name not in selected:
                print_placeholder(block, out)
            else:
                print_contents(block, out)

    def report_single_rule(self, rule_name: str, out: TextIO) -> None:
        self.report_rules([rule_name], out)

    def report_rule_probes(self, out: TextIO) -> None:
        """Write a runtime existence probe for every parsed rule name."""

        probed: set[str] = set()
        for block in self._blocks:
            if block.kind.is_rule and block.rule_name not in probed:
                probed.add(block.rule_name)
                report_rulesdot_rules(block, out)


def _empty_include_replacement(include: Block) -> list[Block]:
    # a nested include still needs a statement in its enclosing suite
    if not include.total_indentation:
        return []
    return [
        Block(
            code_chunk=[" " * include.local_indentation + "pass"],
            local_indentation=include.local_indentation,
            global_indentation=include.global_indentation,
        )
    ]


__all__ = ["SnakemakeFile"]
