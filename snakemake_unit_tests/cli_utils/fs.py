"""Filesystem checks for command line parameters."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


def _combine(path: Path, prefix: Optional[Path]) -> Path:
    return prefix / path if prefix is not None else path


def check_regular_file(path: Path, label: str, prefix: Optional[Path] = None) -> Path:
    """Return ``prefix / path`` if it is a regular file, else raise."""
    combined = _combine(path, prefix)
    if not combined.is_file():
        raise FileNotFoundError(
            f'for "{label}", provided path "{combined}" is not a regular file'
        )
    return combined


def check_and_fix_dir(path: Path, label: str, prefix: Optional[Path] = None) -> Path:
    """Return ``path`` normalized if ``prefix / path`` is a directory, else raise."""
    path = Path(path)
    combined = _combine(path, prefix)
    if not combined.is_dir():
        raise NotADirectoryError(
            f'for "{label}", provided path "{combined}" is not a directory'
        )
    return path
