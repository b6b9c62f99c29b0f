"""Concatenates ordered files into a single isolated bundle and verifies the result."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from .context import BuildContext
from .logging import get_logger
from .models import (
    APPLICATION,
    DUPLICATE_DEFINITION,
    FRAMEWORK,
    VERIFICATION,
    BuildError,
    CoreFile,
)
from .patching import APPLICATION_PRIMITIVES, FRAMEWORK_PRIMITIVES, patch_context
from .rendering import TemplateRenderer
from .sorter import OrderedFile

_ISOLATED_MARKER = "(function(global)"

_REQUIRED_PRIMITIVE = ("define", re.compile(r"\bExt\.define\b|\bdefine\s*:"))
_EXPECTED_PRIMITIVES = (
    ("create", re.compile(r"\bExt\.create\b|\bcreate\s*:")),
    ("application", re.compile(r"\bExt\.application\b|\bapplication\s*:")),
    ("onReady", re.compile(r"\bExt\.onReady\b|\bonReady\s*:")),
)


class BundleVerificationError(BuildError):
    """Raised when the framework part of a bundle lacks the registration primitive."""


@dataclass
class AssembledBundle:
    """The concatenated JavaScript artifact and its composition."""

    text: str
    size_bytes: int
    core_count: int = 0
    framework_count: int = 0
    application_count: int = 0
    framework_text: List[str] = field(default_factory=list, repr=False)

    @property
    def file_count(self) -> int:
        return self.core_count + self.framework_count + self.application_count


@dataclass
class _Segment:
    label: str
    content: str
    origin: str
    wrap: bool = False
    core: bool = False


class BundleAssembler:
    """Renders ordered core and required files through ``bundle.js.j2``."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        *,
        define_guard: bool = False,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.define_guard = define_guard
        self.logger = get_logger("assembler")

    def assemble(
        self,
        ctx: BuildContext,
        ordered: Sequence[OrderedFile],
        *,
        entry: Optional[str] = None,
    ) -> AssembledBundle:
        """Concatenate ``ordered`` (core files first) into one bundle."""
        generated = _timestamp()
        if not ordered:
            self.logger.warning("No files to concatenate; writing a minimal bundle")
            text = self.renderer.render(
                "bundle_minimal.js.j2", generated=generated, entry=entry or "unknown"
            )
            return AssembledBundle(text=text, size_bytes=len(text.encode("utf-8")))

        segments = self._build_segments(ctx, ordered)
        core_count = sum(1 for segment in segments if segment.core)
        text = self.renderer.render(
            "bundle.js.j2",
            generated=generated,
            segments=segments,
            core_count=core_count,
            define_guard=self.define_guard,
        )
        bundle = AssembledBundle(
            text=text,
            size_bytes=len(text.encode("utf-8")),
            core_count=core_count,
            framework_count=sum(
                1 for segment in segments if not segment.core and segment.origin == FRAMEWORK
            ),
            application_count=sum(1 for segment in segments if segment.origin == APPLICATION),
            framework_text=[segment.content for segment in segments if segment.origin == FRAMEWORK],
        )
        self.logger.info(
            "Assembled %d files (%d core, %d framework, %d application): %.1f KB",
            bundle.file_count,
            bundle.core_count,
            bundle.framework_count,
            bundle.application_count,
            bundle.size_bytes / 1024,
        )
        return bundle

    def _build_segments(
        self, ctx: BuildContext, ordered: Sequence[OrderedFile]
    ) -> List[_Segment]:
        segments: List[_Segment] = []
        emitted_names: Set[str] = set()
        emitted_paths: Set[Path] = set()
        for item in ordered:
            if item.name in emitted_names or (item.path is not None and item.path in emitted_paths):
                ctx.report(
                    DUPLICATE_DEFINITION,
                    f"Refusing to emit {item.name} twice ({item.path})",
                    subject=item.name,
                    logger=self.logger,
                )
                continue
            emitted_names.add(item.name)
            if item.path is not None:
                emitted_paths.add(item.path)

            if isinstance(item, CoreFile):
                segments.append(self._core_segment(item))
                continue

            primitives = FRAMEWORK_PRIMITIVES if item.origin == FRAMEWORK else APPLICATION_PRIMITIVES
            segments.append(
                _Segment(
                    label=f"Class: {item.name} ({item.path.name})",
                    content=patch_context(item.content, primitives),
                    origin=item.origin,
                )
            )
        return segments

    def _core_segment(self, item: CoreFile) -> _Segment:
        if item.kind == "file":
            label = item.path.name if item.path is not None else item.name
            return _Segment(
                label=f"Core file: {label}",
                content=patch_context(item.content),
                origin=FRAMEWORK,
                wrap=True,
                core=True,
            )
        if _ISOLATED_MARKER in item.content:
            content = item.content
        else:
            content = patch_context(item.content)
        return _Segment(
            label=f"Core {item.kind}: {item.name}",
            content=content,
            origin=FRAMEWORK,
            core=True,
        )


def verify_bundle(ctx: BuildContext, framework_segments: Sequence[str]) -> Dict[str, bool]:
    """Check the framework code for the primitives an application needs at startup.

    Missing ``create``/``application``/``onReady`` are recorded as warnings; a
    missing registration primitive raises :class:`BundleVerificationError`.
    """
    logger = get_logger("assembler")
    found: Dict[str, bool] = {}
    name, pattern = _REQUIRED_PRIMITIVE
    found[name] = any(pattern.search(text) for text in framework_segments)
    for name, pattern in _EXPECTED_PRIMITIVES:
        found[name] = any(pattern.search(text) for text in framework_segments)
        if not found[name]:
            ctx.report(
                VERIFICATION,
                f"Bundle may be missing Ext.{name}",
                subject=name,
                logger=logger,
            )
    if not found["define"]:
        raise BundleVerificationError(
            "Bundle is missing Ext.define; check that the framework path points to a valid SDK"
        )
    logger.info("Bundle verification passed")
    return found


def _timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


__all__ = ["AssembledBundle", "BundleAssembler", "BundleVerificationError", "verify_bundle"]
