"""snakemake_unit_tests: per-rule pytest workspaces from a snakemake run."""

from .dag import DependencyResolver, Recipe, SolvedRules
from .emit import WorkspaceEmitter
from .parsing import Block, BlockKind, SnakemakeFile
from .report import DiagnosticReport

__version__ = "0.1.0"
__all__ = [
    "Block",
    "BlockKind",
    "DependencyResolver",
    "DiagnosticReport",
    "Recipe",
    "SnakemakeFile",
    "SolvedRules",
    "WorkspaceEmitter",
]
