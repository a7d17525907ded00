"""Dependency closure over solved recipes."""

from __future__ import annotations

import logging
import re
from collections import deque
from typing import Iterable, MutableSet, Optional

from .solved_rules import Recipe, SolvedRules

logger = logging.getLogger(__name__)

_MISSING_RULE = re.compile(
    r"'(?:Rules|Checkpoints)' object has no attribute '(?P<name>[^']+)'"
)

DependencyMap = dict[int, Recipe]


class DependencyResolver:
    """Answers "which recipes must run before this one" for a loaded log.

    Recipes are addressed by their index in :class:`SolvedRules`. Dependency
    maps are ordered dicts from recipe index to recipe, in discovery order.
    """

    def __init__(self, solved: SolvedRules) -> None:
        self._solved = solved
        self._checkpoint_memo: dict[int, bool] = {}

    def direct_producers(self, index: int) -> list[int]:
        producers: dict[int, None] = {}
        for path in self._solved[index].inputs:
            producer = self._solved.producer_of(path)
            if producer is not None and producer != index:
                producers[producer] = None
        return list(producers)

    def add_dag_from_leaf(
        self,
        index: int,
        full_transitive: bool,
        target: Optional[DependencyMap],
    ) -> None:
        """Add producers of recipe ``index`` to ``target``.

        Only direct producers are added unless ``full_transitive`` is set, in
        which case the walk continues breadth first through every upstream
        producer.
        """

        if target is None:
            raise ValueError("null target provided to add_dag_from_leaf")
        queue = deque([index])
        while queue:
            current = queue.popleft()
            for producer in self.direct_producers(current):
                if producer == index or producer in target:
                    continue
                target[producer] = self._solved[producer]
                if full_transitive:
                    queue.append(producer)

    def dependency_closure(
        self, index: int, full_transitive: bool = True
    ) -> DependencyMap:
        target: DependencyMap = {}
        self.add_dag_from_leaf(index, full_transitive, target)
        return target

    def aggregate_dependencies(
        self, index: int, target: Optional[DependencyMap]
    ) -> None:
        """Collect the recipes a test workspace for ``index`` must carry.

        Direct producers are always needed. A producer downstream of a
        checkpoint has outputs that are only known after the checkpoint runs,
        so its entire upstream chain is carried along with it.
        """

        if target is None:
            raise ValueError("null target provided to aggregate_dependencies")
        self.add_dag_from_leaf(index, False, target)
        for producer in list(target):
            if self.is_checkpoint_dependent(producer):
                self.add_dag_from_leaf(producer, True, target)

    def compute_dependency_checkpoints(
        self, index: int, memo: Optional[dict[int, bool]] = None
    ) -> bool:
        """Return whether recipe ``index`` is, or depends on, a checkpoint."""

        memo = self._checkpoint_memo if memo is None else memo
        if index in memo:
            return memo[index]

        in_progress: set[int] = set()
        stack: list[tuple[int, bool]] = [(index, False)]
        while stack:
            current, expanded = stack.pop()
            if current in memo:
                continue
            producers = self.direct_producers(current)
            if not expanded:
                in_progress.add(current)
                stack.append((current, True))
                stack.extend(
                    (producer, False)
                    for producer in producers
                    if producer not in memo and producer not in in_progress
                )
                continue
            recipe = self._solved[current]
            dependent = recipe.is_checkpoint or any(
                memo.get(producer, False) for producer in producers
            )
            memo[current] = dependent
            recipe.checkpoint_dependent = dependent
            in_progress.discard(current)
        return memo[index]

    def is_checkpoint_dependent(self, index: int) -> bool:
        return self.compute_dependency_checkpoints(index)


def find_missing_rules(
    exec_log_lines: Iterable[str], missing: Optional[MutableSet[str]]
) -> None:
    """Record rules snakemake reported as absent from its ``rules`` object.

    Any other exception in the output means the probe itself went wrong.
    """

    if missing is None:
        return
    for line in exec_log_lines:
        match = _MISSING_RULE.search(line)
        if match:
            missing.add(match.group("name"))
            continue
        if "Exception:" in line:
            message = line.strip()
            logger.error(message)
            raise RuntimeError(
                f"unexpected exception in snakemake rule probe output: {message}"
            )


__all__ = ["DependencyMap", "DependencyResolver", "find_missing_rules"]
