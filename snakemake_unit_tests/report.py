"""Diagnostics collected while loading sources and emitting tests."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class DiagnosticReport(BaseModel):
    """Accumulates warnings and summary lines across processing stages.

    One report is threaded through a run so that callers (and tests) can
    inspect what was flagged without scraping log output.
    """

    warnings: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    excluded_rules: list[str] = Field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def note(self, message: str) -> None:
        logger.info(message)
        self.notes.append(message)

    def exclude(self, rule_name: str, reason: str) -> None:
        if rule_name not in self.excluded_rules:
            self.excluded_rules.append(rule_name)
        self.warn(f"excluding rule '{rule_name}': {reason}")

    def has_warning(self, fragment: str) -> bool:
        return any(fragment in warning for warning in self.warnings)


__all__ = ["DiagnosticReport"]
