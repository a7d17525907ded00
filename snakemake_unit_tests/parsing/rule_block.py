"""Block parser and block emission for snakemake source."""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import NamedTuple, Optional, Sequence, TextIO

from ..constants import LEADING_SUB_BLOCKS, TRAILING_SUB_BLOCKS
from .entities import Block, BlockKind, is_include_statement

logger = logging.getLogger(__name__)

_RULE_HEADER = re.compile(
    r"^(?P<indent>\s*)(?P<keyword>rule|checkpoint)\s+(?P<name>\w+)\s*:\s*$"
)
_DERIVED_FROM_HEADER = re.compile(
    r"^(?P<indent>\s*)rule\s+(?P<name>\w+)\s+from\s+(?P<base>\w+)\s*:\s*$"
)
_USE_RULE_HEADER = re.compile(
    r"^(?P<indent>\s*)use\s+rule\s+(?P<base>\w+)\s+as\s+(?P<name>\w+)"
    r"(?P<with>\s+with\s*:)?\s*$"
)
_SUB_BLOCK_HEADER = re.compile(
    r"^(?P<indent>\s*)(?P<name>[A-Za-z_]\w*)\s*:(?P<inline>.*)$", re.DOTALL
)
_STRING_LITERAL_LINE = re.compile(
    r"""^\s*[rRuUbBfF]{0,2}(?P<quote>\"\"\"|'''|"|').*(?P=quote)\s*$""", re.DOTALL
)

SUB_BLOCK_STEP = 4


class RuleHeader(NamedTuple):
    indentation: int
    name: str
    base_name: str
    is_checkpoint: bool


def indentation_of(line: str) -> int:
    """Count leading whitespace characters."""

    return len(line) - len(line.lstrip())


def match_rule_header(line: str) -> Optional[RuleHeader]:
    """Recognize rule, checkpoint and derived rule declarations."""

    match = _RULE_HEADER.match(line)
    if match:
        return RuleHeader(
            indentation=len(match.group("indent")),
            name=match.group("name"),
            base_name="",
            is_checkpoint=match.group("keyword") == "checkpoint",
        )
    match = _DERIVED_FROM_HEADER.match(line) or _USE_RULE_HEADER.match(line)
    if match:
        return RuleHeader(
            indentation=len(match.group("indent")),
            name=match.group("name"),
            base_name=match.group("base"),
            is_checkpoint=False,
        )
    return None


def _dedent(text: str, width: int) -> list[str]:
    pieces = []
    for piece in text.split("\n"):
        strip = min(width, indentation_of(piece))
        pieces.append(piece[strip:])
    return pieces


def _indent(text: str, width: int) -> str:
    if not width:
        return text
    pad = " " * width
    return "\n".join(pad + piece if piece.strip() else piece for piece in text.split("\n"))


def _consume_rule_contents(
    block: Block, lines: Sequence[str], filename: Path, cursor: int
) -> int:
    total = len(lines)
    rule_indent = block.local_indentation
    sub_indent: Optional[int] = None
    current: Optional[str] = None
    docstring_allowed = True

    while cursor < total:
        line = lines[cursor]
        if not line.strip():
            cursor += 1
            continue
        indent = indentation_of(line)
        if indent <= rule_indent:
            break
        header = _SUB_BLOCK_HEADER.match(line)
        if docstring_allowed and header is None and _STRING_LITERAL_LINE.match(line):
            block.docstring = line.strip()
            docstring_allowed = False
            cursor += 1
            continue
        docstring_allowed = False
        if sub_indent is None:
            sub_indent = indent
        if header is None or indent != sub_indent:
            if current is None:
                raise ValueError(
                    f"{filename}:{cursor + 1}: cannot parse content of rule "
                    f"'{block.rule_name}': {line.strip()!r}"
                )
            # still inside the open sub-block, e.g. a closing bracket
            block.named_blocks[current] += "\n" + "\n".join(_dedent(line, sub_indent))
            cursor += 1
            continue

        name = header.group("name")
        first, *rest = header.group("inline").split("\n")
        body = [first.strip()]
        if rest:
            body.extend(_dedent("\n".join(rest), sub_indent))
        cursor += 1
        while cursor < total:
            inner = lines[cursor]
            if not inner.strip():
                cursor += 1
                continue
            if indentation_of(inner) <= sub_indent:
                break
            body.extend(_dedent(inner, sub_indent))
            cursor += 1

        if name in block.named_blocks:
            raise ValueError(
                f"{filename}:{cursor}: rule '{block.rule_name}' declares "
                f"'{name}' more than once"
            )
        block.named_blocks[name] = "\n".join(body)
        current = name
    return cursor


def load_content_block(
    lines: Sequence[str],
    filename: Path,
    global_indentation: int,
    cursor: int,
) -> tuple[Optional[Block], int]:
    """Parse the next block from normalized ``lines`` starting at ``cursor``.

    Returns the block and the cursor position after it, or ``None`` when only
    blank lines remain.
    """

    total = len(lines)
    while cursor < total and not lines[cursor].strip():
        cursor += 1
    if cursor >= total:
        return None, cursor

    line = lines[cursor]
    header = match_rule_header(line)
    if header is not None:
        block = Block(
            rule_name=header.name,
            base_rule_name=header.base_name,
            is_checkpoint=header.is_checkpoint,
            local_indentation=header.indentation,
            global_indentation=global_indentation,
        )
        cursor = _consume_rule_contents(block, lines, filename, cursor + 1)
        logger.debug(f"{filename}: parsed {block.kind.value} '{block.rule_name}'")
        return block, cursor

    block = Block(
        local_indentation=indentation_of(line),
        global_indentation=global_indentation,
    )
    if is_include_statement(line):
        block.code_chunk.append(line)
        return block, cursor + 1

    while cursor < total:
        line = lines[cursor]
        if not line.strip():
            cursor += 1
            continue
        if block.code_chunk and (
            match_rule_header(line)
            or is_include_statement(line)
            or indentation_of(line) < block.local_indentation
        ):
            break
        block.code_chunk.append(line)
        cursor += 1
        # keep anything resembling an include as the final line of its chunk
        if "include:" in line:
            break
    return block, cursor


# ----------------------------------------------------------------------
# Emission
# ----------------------------------------------------------------------
def ordered_sub_block_names(named_blocks: dict[str, str]) -> list[str]:
    """Emission order: input/output, unreserved names, then execution blocks."""

    reserved = set(LEADING_SUB_BLOCKS) | set(TRAILING_SUB_BLOCKS)
    ordered = [name for name in LEADING_SUB_BLOCKS if name in named_blocks]
    ordered.extend(name for name in named_blocks if name not in reserved)
    ordered.extend(name for name in TRAILING_SUB_BLOCKS if name in named_blocks)
    return ordered


def _rule_declaration(block: Block) -> str:
    if block.kind is BlockKind.DERIVED_RULE and not block.inheritance_resolved:
        declaration = f"use rule {block.base_rule_name} as {block.rule_name}"
        return declaration + " with:" if block.named_blocks else declaration
    keyword = "checkpoint" if block.is_checkpoint else "rule"
    return f"{keyword} {block.rule_name}:"


def print_contents(block: Block, out: TextIO) -> None:
    """Write ``block`` back out as snakemake source."""

    kind = block.kind
    if kind in (BlockKind.CODE, BlockKind.INCLUDE):
        for line in block.code_chunk:
            out.write(_indent(line, block.global_indentation) + "\n")
        return
    if kind is BlockKind.EMPTY:
        return

    rule_pad = " " * block.total_indentation
    sub_pad = " " * (block.total_indentation + SUB_BLOCK_STEP)
    out.write(f"{rule_pad}{_rule_declaration(block)}\n")
    if block.docstring:
        out.write(f"{sub_pad}{block.docstring}\n")
    for name in ordered_sub_block_names(block.named_blocks):
        first, *rest = block.named_blocks[name].split("\n")
        out.write(f"{sub_pad}{name}:" + (f" {first}" if first else "") + "\n")
        for piece in rest:
            out.write((sub_pad + piece if piece.strip() else "") + "\n")
    out.write("\n\n")


def print_placeholder(block: Block, out: TextIO) -> None:
    """Write an indentation-correct no-op in place of ``block``."""

    out.write(" " * block.total_indentation + "pass\n")


def report_rulesdot_rules(block: Block, out: TextIO) -> None:
    """Write a probe that reports whether the rule exists at runtime."""

    if not block.kind.is_rule:
        return
    collection = "checkpoints" if block.is_checkpoint else "rules"
    out.write(
        "try:\n"
        f"    {collection}.{block.rule_name}\n"
        "except AttributeError as exc:\n"
        '    print("Exception: " + str(exc))\n'
    )


def render_block(block: Block) -> str:
    buffer = io.StringIO()
    print_contents(block, buffer)
    return buffer.getvalue()


__all__ = [
    "RuleHeader",
    "indentation_of",
    "load_content_block",
    "match_rule_header",
    "ordered_sub_block_names",
    "print_contents",
    "print_placeholder",
    "render_block",
    "report_rulesdot_rules",
]
