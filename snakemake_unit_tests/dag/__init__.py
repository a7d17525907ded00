"""Solved recipes from execution logs and their dependencies."""

from .dependencies import DependencyResolver, find_missing_rules
from .solved_rules import Recipe, SolvedRules

__all__ = ["DependencyResolver", "Recipe", "SolvedRules", "find_missing_rules"]
