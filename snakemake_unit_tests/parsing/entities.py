"""Typed representation of parsed snakemake content."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

_INCLUDE_DIRECTIVE = re.compile(r"^\s*include:\s*(\S.*?)\s*$")
_QUOTED_LITERAL = re.compile(r"""^(?P<quote>['"])(?P<body>[^'"]*)(?P=quote)$""")


def is_include_statement(line: str) -> bool:
    """Return ``True`` if ``line`` is, on its own, an ``include:`` directive."""

    return _INCLUDE_DIRECTIVE.match(line) is not None


class ResolutionStatus(str, Enum):
    """Whether an include directive has been expanded."""

    UNRESOLVED = "unresolved"
    RESOLVED_INCLUDED = "resolved_included"
    RESOLVED_NOT_INCLUDED = "resolved_not_included"
    RESOLUTION_REQUIRES_PYTHON_INTERPRETATION = "requires_python_interpretation"


class BlockKind(str, Enum):
    """Closed set of block shapes produced by the block parser."""

    RULE = "rule"
    DERIVED_RULE = "derived_rule"
    CHECKPOINT = "checkpoint"
    INCLUDE = "include"
    CODE = "code"
    EMPTY = "empty"

    @property
    def is_rule(self) -> bool:
        return self in (BlockKind.RULE, BlockKind.DERIVED_RULE, BlockKind.CHECKPOINT)


class Block(BaseModel):
    """One rule declaration or one chunk of non-rule code.

    A block holds either named sub-blocks (rules, derived rules, checkpoints)
    or code lines (plain python and include directives), never both.
    Equality only considers semantic content; resolution bookkeeping is
    ignored.
    """

    rule_name: str = ""
    base_rule_name: str = ""
    is_checkpoint: bool = False
    docstring: str = ""
    named_blocks: dict[str, str] = Field(default_factory=dict)
    code_chunk: list[str] = Field(default_factory=list)
    local_indentation: int = Field(default=0, ge=0)
    global_indentation: int = Field(default=0, ge=0)

    # bookkeeping
    resolution: ResolutionStatus = ResolutionStatus.UNRESOLVED
    interpreter_tag: int = 0
    resolved_included_filename: Optional[Path] = None
    inheritance_resolved: bool = False

    def _content_key(self) -> tuple[Any, ...]:
        return (
            self.rule_name,
            self.base_rule_name,
            self.is_checkpoint,
            self.docstring,
            self.named_blocks,
            self.code_chunk,
            self.local_indentation,
            self.global_indentation,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Block):
            return NotImplemented
        return self._content_key() == other._content_key()

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def kind(self) -> BlockKind:
        if self.rule_name:
            if self.base_rule_name:
                return BlockKind.DERIVED_RULE
            if self.is_checkpoint:
                return BlockKind.CHECKPOINT
            return BlockKind.RULE
        if self.contains_include_directive():
            return BlockKind.INCLUDE
        if self.code_chunk:
            return BlockKind.CODE
        return BlockKind.EMPTY

    @property
    def total_indentation(self) -> int:
        return self.global_indentation + self.local_indentation

    # ------------------------------------------------------------------
    # Include directives
    # ------------------------------------------------------------------
    def contains_include_directive(self) -> bool:
        """Return ``True`` if the code chunk is exactly one include statement."""

        if len(self.code_chunk) != 1:
            return False
        return is_include_statement(self.code_chunk[0])

    def get_filename_expression(self) -> str:
        """Return the raw expression following ``include:``."""

        if len(self.code_chunk) != 1:
            raise ValueError(
                "get_filename_expression called on a block that is not a "
                f"single-line include directive: {self.code_chunk!r}"
            )
        match = _INCLUDE_DIRECTIVE.match(self.code_chunk[0])
        if match is None:
            raise ValueError(
                f"code chunk does not match include grammar: {self.code_chunk[0]!r}"
            )
        return match.group(1)

    def has_literal_include_target(self) -> bool:
        return _QUOTED_LITERAL.match(self.get_filename_expression()) is not None

    def get_recursive_filename(self) -> str:
        """Return the included path with its string quotes removed."""

        expression = self.get_filename_expression()
        match = _QUOTED_LITERAL.match(expression)
        if match is None:
            raise ValueError(
                f"include directive does not operate on a string literal: {expression}"
            )
        return match.group("body")

    # ------------------------------------------------------------------
    # Rule inheritance
    # ------------------------------------------------------------------
    def offer_base_rule_contents(self, base_rule_name: str, name: str, body: str) -> bool:
        """Adopt ``body`` for sub-block ``name`` unless this rule defines it."""

        if base_rule_name != self.base_rule_name:
            raise ValueError(
                f"rule '{self.rule_name}' derives from '{self.base_rule_name}', "
                f"not '{base_rule_name}'"
            )
        if name in self.named_blocks:
            return False
        self.named_blocks[name] = body
        return True


__all__ = ["Block", "BlockKind", "ResolutionStatus", "is_include_statement"]
