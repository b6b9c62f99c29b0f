"""Dependency ordering of required files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Set, Tuple, Union

from .context import BuildContext
from .logging import get_logger
from .models import CIRCULAR_DEPENDENCY, FRAMEWORK, CoreFile, RequiredFile

OrderedFile = Union[CoreFile, RequiredFile]


class TopologicalSorter:
    """Depth-first post-order linearization; back-edges are dropped and reported."""

    def __init__(self) -> None:
        self.logger = get_logger("sorter")

    def sort(
        self,
        ctx: BuildContext,
        required: Sequence[RequiredFile],
        core: Sequence[CoreFile] = (),
    ) -> List[OrderedFile]:
        """Return core files by priority followed by ``required`` in dependency order."""
        by_name: Dict[str, RequiredFile] = {}
        for item in required:
            by_name.setdefault(item.name, item)
        graph: Dict[str, List[str]] = {
            name: [dep for dep in item.dependencies if dep in by_name and dep != name]
            for name, item in by_name.items()
        }

        visited: Set[str] = set()
        ordered: List[RequiredFile] = []
        for name in graph:
            if name not in visited:
                self._visit(ctx, name, graph, visited, by_name, ordered)

        sorted_core = sorted(core, key=lambda item: item.priority)
        self.logger.info(
            "Sorted %d files: %d core + %d required",
            len(sorted_core) + len(ordered),
            len(sorted_core),
            len(ordered),
        )
        return [*sorted_core, *ordered]

    def _visit(
        self,
        ctx: BuildContext,
        start: str,
        graph: Dict[str, List[str]],
        visited: Set[str],
        by_name: Dict[str, RequiredFile],
        ordered: List[RequiredFile],
    ) -> None:
        active: Set[str] = {start}
        stack: List[Tuple[str, Iterator[str]]] = [(start, iter(graph[start]))]
        while stack:
            name, pending = stack[-1]
            advanced = False
            for dependency in pending:
                if dependency in active:
                    ctx.report(
                        CIRCULAR_DEPENDENCY,
                        f"Circular dependency detected involving {dependency} (edge from {name} dropped)",
                        subject=dependency,
                        logger=self.logger,
                    )
                    continue
                if dependency in visited:
                    continue
                active.add(dependency)
                stack.append((dependency, iter(graph[dependency])))
                advanced = True
                break
            if advanced:
                continue
            stack.pop()
            active.discard(name)
            visited.add(name)
            ordered.append(by_name[name])


def merge_core_and_required(
    core: Sequence[CoreFile],
    required: Sequence[RequiredFile],
) -> List[RequiredFile]:
    """Drop required files already provided by the core, then deduplicate by path."""
    logger = get_logger("sorter")
    has_bundle = any(item.kind == "bundle" for item in core)
    covered: Set[Path] = set()
    for item in core:
        covered.update(item.covers)
        if item.path is not None:
            covered.add(item.path)

    merged: List[RequiredFile] = []
    seen: Set[Path] = set()
    for item in required:
        if has_bundle and item.origin == FRAMEWORK:
            continue
        if item.path in covered:
            logger.debug("%s is already part of the core; skipping", item.name)
            continue
        if item.path in seen:
            logger.debug("Deduplicating %s (%s)", item.path, item.name)
            continue
        seen.add(item.path)
        merged.append(item)
    if has_bundle:
        logger.info(
            "Core bundle detected; %d framework files left to the bundle",
            sum(1 for item in required if item.origin == FRAMEWORK),
        )
    return merged


__all__ = ["OrderedFile", "TopologicalSorter", "merge_core_and_required"]
