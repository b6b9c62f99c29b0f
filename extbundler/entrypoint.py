"""Entry-file discovery and entry-class determination."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .context import BuildContext
from .extractor import DependencyExtractor
from .logging import get_logger
from .models import BuildError, ClassDeclaration


class MissingEntryPointError(BuildError):
    """Raised when no entry file or no entry class can be found."""


@dataclass
class EntryPoint:
    """Where the dependency walk starts.

    ``class_name`` is ``None`` for an inline ``Ext.application({...})`` without
    ``extend``. The launcher's other declared dependencies (``requires``,
    ``mainView``, role lists) are carried in ``roots``.
    """

    file_path: Path
    class_name: Optional[str] = None
    launcher: Optional[ClassDeclaration] = None
    roots: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.class_name or f"inline application ({self.file_path.name})"


def entry_candidates(app_dir: Path, classpath: Sequence[Path]) -> List[Path]:
    """Entry-file locations in lookup order."""
    candidates = [
        app_dir / "app.js",
        app_dir / "Application.js",
        app_dir / "app" / "Application.js",
    ]
    for directory in classpath:
        candidate = directory / "Application.js"
        if candidate not in candidates:
            candidates.append(candidate)
    return candidates


def find_entry_file(app_dir: Path, classpath: Sequence[Path]) -> Path:
    logger = get_logger("entrypoint")
    for candidate in entry_candidates(app_dir, classpath):
        if candidate.is_file():
            logger.info("Found application entry point: %s", candidate)
            return candidate
    raise MissingEntryPointError(f"Could not find app.js or Application.js entry point under {app_dir}")


def resolve_entry_point(
    ctx: BuildContext,
    entry_file: Path,
    extractor: DependencyExtractor | None = None,
) -> EntryPoint:
    """Determine the entry class declared in ``entry_file``."""
    logger = get_logger("entrypoint")
    extractor = extractor or DependencyExtractor(
        namespace=ctx.namespace, app_namespace=ctx.app_namespace
    )
    try:
        source = ctx.read(entry_file)
    except (OSError, UnicodeDecodeError) as exc:
        raise MissingEntryPointError(f"Could not read entry file {entry_file}: {exc}") from exc

    launcher = extractor.application(source)
    if launcher is not None:
        roots = [name for name in launcher.dependencies if name != launcher.extends]
        if launcher.extends:
            logger.info("Application extends %s", launcher.extends)
            return EntryPoint(
                file_path=source.path,
                class_name=launcher.extends,
                launcher=launcher,
                roots=roots,
            )
        logger.warning(
            "%s.application() in %s has no 'extend'; starting from its %d declared dependencies",
            ctx.namespace,
            entry_file.name,
            len(roots),
        )
        return EntryPoint(file_path=source.path, launcher=launcher, roots=roots)

    declarations = extractor.declarations(source)
    if declarations:
        logger.info("Entry class %s", declarations[0].name)
        return EntryPoint(file_path=source.path, class_name=declarations[0].name)

    raise MissingEntryPointError(
        f"No {ctx.namespace}.define or {ctx.namespace}.application found in {entry_file}"
    )


__all__ = [
    "EntryPoint",
    "MissingEntryPointError",
    "entry_candidates",
    "find_entry_file",
    "resolve_entry_point",
]
