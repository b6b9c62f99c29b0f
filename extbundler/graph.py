"""Dependency graph construction from an entry class."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Deque, Dict, List, Optional, Sequence, Set

from .context import BuildContext
from .extractor import DependencyExtractor
from .logging import get_logger
from .models import (
    APPLICATION,
    CIRCULAR_DEPENDENCY,
    FRAMEWORK,
    PARSE_FAILURE,
    UNRESOLVED_DEPENDENCY,
    BuildError,
    RequiredFile,
)
from .naming import is_wildcard


class UnresolvedDependencyError(BuildError):
    """Raised for an unknown class name when unresolved dependencies are fatal."""

    def __init__(self, name: str, required_by: Optional[str] = None) -> None:
        self.name = name
        self.required_by = required_by
        detail = f" (required by {required_by})" if required_by else ""
        super().__init__(f"Could not find a file for class {name}{detail}")


@dataclass
class GraphResult:
    """Classes and files reachable from the entry point."""

    required_class_names: List[str] = field(default_factory=list)
    required_files: List[RequiredFile] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)
    conflicts: Dict[str, List[Path]] = field(default_factory=dict)


class DependencyGraphBuilder:
    """Worklist traversal over declared dependencies, tolerant of cycles and gaps."""

    def __init__(
        self,
        extractor: DependencyExtractor | None = None,
        *,
        fail_on_unresolved: bool = False,
    ) -> None:
        self.extractor = extractor
        self.fail_on_unresolved = fail_on_unresolved
        self.logger = get_logger("graph")

    def build(
        self,
        ctx: BuildContext,
        entry_name: Optional[str],
        *,
        roots: Sequence[str] = (),
        entry_file: Optional[Path] = None,
    ) -> GraphResult:
        """Resolve every class reachable from ``entry_name`` (and any extra ``roots``)."""
        extractor = self.extractor or DependencyExtractor(
            namespace=ctx.namespace, app_namespace=ctx.app_namespace
        )
        self.logger.info("Building dependency graph starting from %s", entry_name or "application roots")

        result = GraphResult()
        visited: Set[str] = set()
        included_paths: Set[Path] = set()
        required_by: Dict[str, str] = {}
        queue: Deque[str] = deque()
        queued: Set[str] = set()

        seeds = [entry_name] if entry_name else []
        for name in self._expand(ctx, [*seeds, *roots]):
            if name not in queued:
                queue.append(name)
                queued.add(name)

        while queue:
            name = queue.popleft()
            queued.discard(name)
            if name in visited:
                continue

            visited.add(name)
            dependencies = self._visit(ctx, extractor, name, result, included_paths, required_by)
            for dependency in dependencies:
                if dependency in visited:
                    chain = _discovery_chain(name, dependency, required_by)
                    if chain is not None:
                        ctx.report(
                            CIRCULAR_DEPENDENCY,
                            f"Circular dependency detected: {' -> '.join(chain)}",
                            subject=dependency,
                            logger=self.logger,
                        )
                    continue
                if dependency in queued:
                    continue
                queue.append(dependency)
                queued.add(dependency)
                required_by.setdefault(dependency, name)

        if not result.required_files and entry_file is not None:
            self._add_entry_file(ctx, entry_name, entry_file, result)

        result.required_files = _deduplicate(result.required_files, self.logger)
        self.logger.info(
            "Found %d required classes in %d files (%d unresolved)",
            len(result.required_class_names),
            len(result.required_files),
            len(result.unresolved),
        )
        return result

    def _visit(
        self,
        ctx: BuildContext,
        extractor: DependencyExtractor,
        name: str,
        result: GraphResult,
        included_paths: Set[Path],
        required_by: Dict[str, str],
    ) -> List[str]:
        entry = ctx.index.get(name)
        if entry is None:
            self._unresolved(ctx, name, required_by.get(name), result)
            return []

        ignored = ctx.index.conflicts.get(name)
        if ignored:
            result.conflicts[name] = list(ignored)
            self.logger.warning(
                "Required class %s has %d other definition(s); using %s",
                name,
                len(ignored),
                entry.path,
            )

        try:
            source = ctx.read(entry.path)
        except (OSError, UnicodeDecodeError) as exc:
            ctx.report(
                PARSE_FAILURE,
                f"Failed to read {entry.path}: {exc}",
                subject=str(entry.path),
                logger=self.logger,
            )
            return []

        declaration = extractor.extract(source, name)
        if declaration is None and entry.origin != FRAMEWORK:
            self.logger.warning("Class %s not found in %s", name, entry.path)
            return []

        declared = declaration.dependencies if declaration is not None else []
        dependencies = [dep for dep in self._expand(ctx, declared) if dep != name]

        result.required_class_names.append(name)
        if entry.path in included_paths:
            self.logger.debug("File already included: %s (class %s)", entry.path.name, name)
        else:
            included_paths.add(entry.path)
            result.required_files.append(
                RequiredFile(
                    name=name,
                    path=entry.path,
                    origin=entry.origin,
                    dependencies=dependencies,
                    content=source.text,
                )
            )
            self.logger.debug(
                "  %s (%s) -> %d dependencies", name, entry.origin, len(dependencies)
            )
        return dependencies

    def _expand(self, ctx: BuildContext, names: Sequence[str]) -> List[str]:
        expanded: List[str] = []
        seen: Set[str] = set()
        for name in names:
            if is_wildcard(name):
                matches = ctx.index.expand_wildcard(name)
                if not matches:
                    self.logger.debug("No classes found for wildcard %s", name)
                else:
                    self.logger.debug("Wildcard %s expanded to %d classes", name, len(matches))
                candidates = matches
            else:
                candidates = [name]
            for candidate in candidates:
                if candidate not in seen:
                    seen.add(candidate)
                    expanded.append(candidate)
        return expanded

    def _unresolved(
        self,
        ctx: BuildContext,
        name: str,
        parent: Optional[str],
        result: GraphResult,
    ) -> None:
        if self.fail_on_unresolved:
            raise UnresolvedDependencyError(name, parent)
        result.unresolved.append(name)
        message = f"Could not find file for class {name}"
        if parent:
            message += f" (required by {parent})"
        lowered = name.lower()
        for candidate in ctx.index:
            if candidate.lower() == lowered:
                message += f"; did you mean {candidate}?"
                break
        ctx.report(UNRESOLVED_DEPENDENCY, message, subject=name, logger=self.logger)

    def _add_entry_file(
        self,
        ctx: BuildContext,
        entry_name: Optional[str],
        entry_file: Path,
        result: GraphResult,
    ) -> None:
        try:
            source = ctx.read(entry_file)
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Could not read entry file %s: %s", entry_file, exc)
            return
        name = entry_name or entry_file.stem
        result.required_files.append(
            RequiredFile(
                name=name,
                path=source.path,
                origin=APPLICATION,
                dependencies=[],
                content=source.text,
            )
        )
        if name not in result.required_class_names:
            result.required_class_names.append(name)
        self.logger.info("No dependency chain resolved; including entry file %s alone", entry_file)


def _discovery_chain(
    name: str, dependency: str, required_by: Dict[str, str]
) -> Optional[List[str]]:
    """Return ``dependency -> ... -> name -> dependency`` when ``name`` was reached from ``dependency``."""
    chain = [name]
    current = name
    while current in required_by:
        current = required_by[current]
        chain.append(current)
        if current == dependency:
            chain.reverse()
            chain.append(dependency)
            return chain
    return None


def _deduplicate(files: List[RequiredFile], logger) -> List[RequiredFile]:  # type: ignore[no-untyped-def]
    unique: List[RequiredFile] = []
    seen_names: Set[str] = set()
    seen_paths: Set[Path] = set()
    for required in files:
        if required.name in seen_names or required.path in seen_paths:
            logger.debug("Skipping duplicate: %s (%s)", required.name, required.path.name)
            continue
        unique.append(required)
        seen_names.add(required.name)
        seen_paths.add(required.path)
    return unique


__all__ = ["DependencyGraphBuilder", "GraphResult", "UnresolvedDependencyError"]
