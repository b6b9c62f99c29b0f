"""Locates or synthesizes the framework core that loads before application classes."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional

from .context import BuildContext
from .logging import get_logger
from .models import MISSING_BOOTSTRAP, CoreFile
from .patching import patch_context
from .rendering import TemplateRenderer

BUNDLE_CANDIDATES = (
    "build/ext-all-debug.js",
    "build/ext-all.js",
    "ext-all-debug.js",
    "ext-all.js",
    "ext.js",
)

CRITICAL_FILES = (
    "packages/core/src/Ext.js",
    "packages/core/src/lang/Array.js",
    "packages/core/src/lang/String.js",
    "packages/core/src/lang/Function.js",
    "packages/core/src/lang/Object.js",
    "packages/core/src/lang/Date.js",
    "packages/core/src/class/Class.js",
    "packages/core/src/class/Base.js",
    "packages/core/src/class/Mixin.js",
    "packages/core/src/class/ClassManager.js",
    "packages/core/src/Loader.js",
    "packages/core/src/GlobalEvents.js",
    "packages/core/src/util/Observable.js",
)

INDIVIDUAL_CORE_FILES = (
    ("packages/core/src/Ext.js", 1),
    ("packages/core/src/class/Class.js", 2),
    ("packages/core/src/class/Base.js", 3),
    ("packages/core/src/class/ClassManager.js", 4),
    ("packages/core/src/Loader.js", 5),
)

_SPECIAL_ROLES = {
    "ClassManager.js": "class_manager",
    "Loader.js": "loader",
}


def _core_name(label: str, prefix: str = "__CORE_") -> str:
    return prefix + re.sub(r"[^a-zA-Z0-9]", "_", label)


class BootstrapResolver:
    """Chooses the framework core: prebuilt bundle, synthesized bootstrap, or individual files."""

    def __init__(
        self,
        *,
        force_minimal_core: bool = False,
        synthesize: bool = True,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.force_minimal_core = force_minimal_core
        self.synthesize = synthesize
        self.renderer = renderer or TemplateRenderer()
        self.logger = get_logger("bootstrap")

    def resolve(self, ctx: BuildContext, ext_path: Path) -> List[CoreFile]:
        """Return the core files ordered by ascending priority (possibly empty)."""
        if self.force_minimal_core:
            self.logger.info("force_minimal_core set; skipping prebuilt bundle search")
        else:
            bundle = self.find_bundle(ctx, ext_path)
            if bundle is not None:
                return [bundle]

        if self.synthesize:
            return [self.synthesize_bootstrap(ctx, ext_path)]

        self.logger.warning("Bootstrap synthesis disabled; falling back to individual core files")
        core = self.individual_files(ctx, ext_path)
        if not core:
            ctx.report(
                MISSING_BOOTSTRAP,
                f"No framework core files found under {ext_path}",
                subject=str(ext_path),
                logger=self.logger,
            )
        return core

    def find_bundle(self, ctx: BuildContext, ext_path: Path) -> Optional[CoreFile]:
        for relative in BUNDLE_CANDIDATES:
            candidate = ext_path / relative
            if not candidate.is_file():
                continue
            try:
                source = ctx.read(candidate)
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Could not read bundle %s: %s", candidate, exc)
                continue
            self.logger.info("Using framework bundle %s", relative)
            return CoreFile(
                name=_core_name(candidate.name, "__CORE_BUNDLE_"),
                kind="bundle",
                content=source.text,
                priority=0,
                path=source.path,
            )
        return None

    def synthesize_bootstrap(self, ctx: BuildContext, ext_path: Path) -> CoreFile:
        """Concatenate the critical framework files into one isolated bootstrap."""
        files: List[Dict[str, str]] = []
        covers = set()
        for relative in CRITICAL_FILES:
            candidate = ext_path / relative
            if not candidate.is_file():
                self.logger.debug("Critical file not found: %s", relative)
                continue
            try:
                source = ctx.read(candidate)
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Could not read %s: %s", relative, exc)
                continue
            files.append(
                {
                    "label": candidate.name,
                    "role": _SPECIAL_ROLES.get(candidate.name, "plain"),
                    "content": patch_context(source.text),
                }
            )
            covers.add(source.path)

        if not files:
            self.logger.warning(
                "No critical framework files found under %s; using ultra-minimal bootstrap", ext_path
            )
            return CoreFile(
                name="__CORE_ULTRA_MINIMAL_BOOTSTRAP",
                kind="bootstrap",
                content=self.renderer.render("bootstrap_ultra_minimal.js.j2"),
                priority=0,
            )

        self.logger.info(
            "Created bootstrap with %d/%d critical files", len(files), len(CRITICAL_FILES)
        )
        return CoreFile(
            name="__CORE_MINIMAL_BOOTSTRAP",
            kind="bootstrap",
            content=self.renderer.render(
                "bootstrap.js.j2", files=files, total=len(CRITICAL_FILES)
            ),
            priority=0,
            covers=frozenset(covers),
        )

    def individual_files(self, ctx: BuildContext, ext_path: Path) -> List[CoreFile]:
        core: List[CoreFile] = []
        for relative, priority in INDIVIDUAL_CORE_FILES:
            candidate = ext_path / relative
            if not candidate.is_file():
                continue
            try:
                source = ctx.read(candidate)
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Could not read core file %s: %s", candidate, exc)
                continue
            self.logger.debug("Found core file %s", relative)
            core.append(
                CoreFile(
                    name=_core_name(candidate.name),
                    kind="file",
                    content=source.text,
                    priority=priority,
                    path=source.path,
                )
            )
        return sorted(core, key=lambda item: item.priority)


__all__ = [
    "BUNDLE_CANDIDATES",
    "BootstrapResolver",
    "CRITICAL_FILES",
    "INDIVIDUAL_CORE_FILES",
]
