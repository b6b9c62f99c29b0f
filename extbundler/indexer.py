"""Source tree indexing: qualified class name -> declaring file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from .context import BuildContext
from .extractor import DependencyExtractor
from .logging import get_logger
from .models import (
    APPLICATION,
    DUPLICATE_DEFINITION,
    FRAMEWORK,
    PARSE_FAILURE,
    FileIndex,
    IndexEntry,
)

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".sencha",
    ".idea",
    "node_modules",
    "__pycache__",
    "build",
    "temp",
}

_SHARED_SOURCE_DIRS = (
    "packages/core/src",
    "packages",
)

# Leading path segments that never form part of a framework class name.
_STRIPPED_SEGMENTS = {"src", "classic", "modern"}


@dataclass(frozen=True)
class SourceRoot:
    """A directory to index and the origin tag its classes receive."""

    path: Path
    origin: str = APPLICATION


def framework_roots(ext_path: Path, toolkit: str = "classic") -> List[SourceRoot]:
    """Return the framework SDK source directories that exist under ``ext_path``.

    The toolkit's own sources (``classic/classic/src`` or ``modern/modern/src``)
    come first, then the shared core packages.
    """
    logger = get_logger("indexer")
    roots: List[SourceRoot] = []
    for relative in (f"{toolkit}/{toolkit}/src", *_SHARED_SOURCE_DIRS):
        candidate = ext_path / relative
        if candidate.is_dir():
            roots.append(SourceRoot(path=candidate, origin=FRAMEWORK))
        else:
            logger.debug("Framework source path not found: %s", relative)
    return roots


def infer_framework_name(relative_path: str, namespace: str = "Ext") -> Optional[str]:
    """Infer a framework class name from a path such as ``core/src/util/Format.js``."""
    stem = relative_path[:-3] if relative_path.endswith(".js") else relative_path
    parts = [part for part in stem.replace("\\", "/").split("/") if part]
    if "src" in parts[:3]:
        parts = parts[parts.index("src") + 1 :]
    while parts and parts[0] in _STRIPPED_SEGMENTS:
        parts = parts[1:]
    if not parts:
        return None
    return ".".join([namespace, *parts])


def _iter_js_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        for filename in sorted(filenames):
            if filename.endswith(".js"):
                yield Path(dirpath) / filename


class SourceIndexer:
    """Walks source roots and records the class each file registers."""

    def __init__(self, extractor: DependencyExtractor | None = None) -> None:
        self.extractor = extractor
        self.logger = get_logger("indexer")

    def index(self, ctx: BuildContext, roots: Sequence[SourceRoot]) -> FileIndex:
        """Populate ``ctx.index`` from every root, in the order given."""
        for root in roots:
            if not root.path.is_dir():
                self.logger.debug("Skipping missing source root %s", root.path)
                continue
            count = self.index_root(ctx, root)
            self.logger.info("Indexed %d %s classes in %s", count, root.origin, root.path)

        framework_count = len(ctx.index.names(FRAMEWORK))
        self.logger.info(
            "Total classes indexed: %d (%d framework, %d application)",
            len(ctx.index),
            framework_count,
            len(ctx.index) - framework_count,
        )
        return ctx.index

    def index_root(self, ctx: BuildContext, root: SourceRoot) -> int:
        extractor = self._extractor_for(ctx)
        indexed = 0
        for path in _iter_js_files(root.path):
            try:
                name = self._index_file(ctx, extractor, root, path)
            except Exception as exc:  # one bad file never aborts indexing
                ctx.report(
                    PARSE_FAILURE,
                    f"Could not index {path}: {exc}",
                    subject=str(path),
                    logger=self.logger,
                )
                continue
            if name is not None:
                indexed += 1
        return indexed

    def _index_file(
        self,
        ctx: BuildContext,
        extractor: DependencyExtractor,
        root: SourceRoot,
        path: Path,
    ) -> Optional[str]:
        try:
            source = ctx.read(path)
        except (OSError, UnicodeDecodeError) as exc:
            ctx.report(
                PARSE_FAILURE,
                f"Failed to read {path}: {exc}",
                subject=str(path),
                logger=self.logger,
            )
            return None

        declarations = extractor.declarations(source)
        broken = source.parsed.has_error  # type: ignore[attr-defined]
        source.discard_tree()

        relative = path.relative_to(root.path).as_posix()
        name: Optional[str] = None
        if declarations:
            name = declarations[0].name
            if len(declarations) > 1:
                self.logger.debug(
                    "%s registers %d classes; indexing %s", relative, len(declarations), name
                )
        elif broken:
            ctx.report(
                PARSE_FAILURE,
                f"Failed to parse {path}: syntax errors and no registration call",
                subject=str(path),
                logger=self.logger,
            )
            return None
        elif root.origin == FRAMEWORK:
            name = infer_framework_name(relative, ctx.namespace)

        if name is None:
            return None

        existing = ctx.index.get(name)
        if existing is not None and existing.path != source.path:
            ctx.report(
                DUPLICATE_DEFINITION,
                f"Duplicate class definition for {name}: keeping {existing.path}, discarding {source.path}",
                subject=name,
                logger=self.logger,
            )
        added = ctx.index.add(
            name, IndexEntry(path=source.path, origin=root.origin, relative_path=relative)
        )
        return name if added else None

    def _extractor_for(self, ctx: BuildContext) -> DependencyExtractor:
        if self.extractor is not None:
            return self.extractor
        return DependencyExtractor(namespace=ctx.namespace, app_namespace=ctx.app_namespace)


__all__ = ["SourceIndexer", "SourceRoot", "framework_roots", "infer_framework_name"]
