"""Snakemake source parsing: lexical cleanup, blocks and include resolution."""

from .entities import Block, BlockKind, ResolutionStatus
from .lexical import lexical_parse, split_comma_list
from .rule_block import load_content_block, print_contents, print_placeholder
from .snakefile import SnakemakeFile

__all__ = [
    "Block",
    "BlockKind",
    "ResolutionStatus",
    "SnakemakeFile",
    "lexical_parse",
    "load_content_block",
    "print_contents",
    "print_placeholder",
    "split_comma_list",
]
