"""Lexical cleanup of snakemake source lines.

Comments and free-standing triple-quoted strings are removed, and logical lines
that continue inside an open string literal are joined back together. The
output always has one entry per input line so that line numbers stay usable in
diagnostics; lines that were folded into an earlier logical line, or that only
held removed content, become empty strings.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Sequence


class QuoteType(str, Enum):
    """Open string delimiter, if any, at a given point of the scan."""

    NONE = ""
    SINGLE_TICK = "'"
    SINGLE_QUOTE = '"'
    TRIPLE_TICK = "'''"
    TRIPLE_QUOTE = '"""'

    @property
    def delimiter(self) -> str:
        return self.value


# a triple-quoted literal following one of these is a value, not a docstring;
# a closing quote means implicit string concatenation
_VALUE_CONTEXT_ENDINGS = (":", ",", "(", "[", "{", "=", "+", "\\", '"', "'")

_LIST_SEPARATOR = re.compile(r"[,\s]+")


def _opening_quote(line: str, index: int) -> QuoteType:
    char = line[index]
    if line.startswith(char * 3, index):
        return QuoteType.TRIPLE_TICK if char == "'" else QuoteType.TRIPLE_QUOTE
    return QuoteType.SINGLE_TICK if char == "'" else QuoteType.SINGLE_QUOTE


def _prune_line(
    line: str,
    quote: QuoteType,
    discarding: bool,
    *,
    logical_start: bool,
    previous: str,
) -> tuple[str, QuoteType, bool]:
    """Scan one physical line, returning kept text and the carried state."""

    kept: list[str] = []
    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if quote is QuoteType.NONE:
            if char == "#":
                break
            if char in "'\"":
                quote = _opening_quote(line, index)
                width = len(quote.delimiter)
                is_docstring = (
                    width == 3
                    and logical_start
                    and not "".join(kept).strip()
                    and not previous.endswith(_VALUE_CONTEXT_ENDINGS)
                )
                if is_docstring:
                    discarding = True
                else:
                    kept.append(quote.delimiter)
                index += width
                continue
            kept.append(char)
            index += 1
            continue

        if char == "\\":
            if not discarding:
                kept.append(line[index : index + 2])
            index += 2
            continue
        if line.startswith(quote.delimiter, index):
            if not discarding:
                kept.append(quote.delimiter)
            index += len(quote.delimiter)
            quote = QuoteType.NONE
            discarding = False
            continue
        if not discarding:
            kept.append(char)
        index += 1
    return "".join(kept), quote, discarding


def lexical_parse(lines: Sequence[str]) -> list[str]:
    """Prune comments and docstrings from ``lines``.

    Quote state is carried across line boundaries. A line that ends inside a
    string literal is not an error: following lines are consumed until the
    literal closes, and the joined text is stored at the position of the line
    where the logical line began.
    """

    results = [""] * len(lines)
    quote = QuoteType.NONE
    discarding = False
    previous = ""
    start: int | None = None
    fragments: list[str] = []

    for index, raw in enumerate(lines):
        line = raw.rstrip("\r\n")
        fragment, quote, discarding = _prune_line(
            line,
            quote,
            discarding,
            logical_start=not any(piece.strip() for piece in fragments),
            previous=previous,
        )
        if start is None:
            start = index
        fragments.append(fragment)
        if quote is not QuoteType.NONE:
            continue

        logical = "\n".join(fragments).rstrip()
        if not logical.strip():
            logical = ""
        results[start] = logical
        if logical:
            previous = logical
        start = None
        fragments = []

    # unterminated literal at end of file
    if start is not None:
        logical = "\n".join(fragments).rstrip()
        results[start] = logical if logical.strip() else ""
    return results


def split_comma_list(text: str) -> list[str]:
    """Split a comma and/or space delimited list of paths."""

    return [item for item in _LIST_SEPARATOR.split(text.strip()) if item]


__all__ = ["QuoteType", "lexical_parse", "split_comma_list"]
