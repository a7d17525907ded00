"""Test workspace and script emission."""

from .workspace import WorkspaceEmitter

__all__ = ["WorkspaceEmitter"]
