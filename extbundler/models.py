"""Core data models shared across extbundler components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

FRAMEWORK = "framework"
APPLICATION = "application"

PARSE_FAILURE = "parse_failure"
UNRESOLVED_DEPENDENCY = "unresolved_dependency"
DUPLICATE_DEFINITION = "duplicate_definition"
CIRCULAR_DEPENDENCY = "circular_dependency"
MISSING_BOOTSTRAP = "missing_bootstrap"
VERIFICATION = "verification"


class BuildError(RuntimeError):
    """Base class for errors that abort a build."""


@dataclass(frozen=True)
class SourceFile:
    """A JavaScript file read from disk; the syntax tree is parsed on first use."""

    path: Path
    text: str
    _parsed: object = field(default=None, init=False, repr=False, compare=False)

    @property
    def parsed(self):  # type: ignore[no-untyped-def]
        if self._parsed is None:
            from .parsing import parse_source

            object.__setattr__(self, "_parsed", parse_source(self.text))
        return self._parsed

    def discard_tree(self) -> None:
        """Drop the cached syntax tree; it is re-parsed on next access."""
        object.__setattr__(self, "_parsed", None)


@dataclass
class ClassDeclaration:
    """Relationships declared by one registration (or application) call."""

    name: str
    source: SourceFile
    kind: str = "define"
    extends: Optional[str] = None
    overrides: Optional[str] = None
    main_view: Optional[str] = None
    requires: List[str] = field(default_factory=list)
    mixins: List[str] = field(default_factory=list)
    uses: List[str] = field(default_factory=list)
    roles: Dict[str, List[str]] = field(default_factory=dict)
    namespace: Optional[str] = None

    @property
    def path(self) -> Path:
        return self.source.path

    @property
    def dependencies(self) -> List[str]:
        """Ordered unique union of every declared dependency name."""
        ordered: List[str] = []
        seen: set[str] = set()

        def _add(name: Optional[str]) -> None:
            if not name:
                return
            cleaned = name.strip()
            if cleaned and cleaned not in seen:
                seen.add(cleaned)
                ordered.append(cleaned)

        _add(self.extends)
        _add(self.overrides)
        _add(self.main_view)
        for group in (self.requires, self.mixins, self.uses):
            for name in group:
                _add(name)
        for role in ("controller", "model", "view", "store", "profile"):
            for name in self.roles.get(role, []):
                _add(name)
        return ordered


@dataclass(frozen=True)
class IndexEntry:
    """Location of the file that registers a qualified name."""

    path: Path
    origin: str
    relative_path: str


class FileIndex:
    """Mapping of qualified class names to the file that declares them."""

    def __init__(self) -> None:
        self._entries: Dict[str, IndexEntry] = {}
        self.conflicts: Dict[str, List[Path]] = {}

    def add(self, name: str, entry: IndexEntry) -> bool:
        """Register ``name``; a second file for the same name is kept as a conflict."""
        existing = self._entries.get(name)
        if existing is None:
            self._entries[name] = entry
            return True
        if existing.path != entry.path:
            self.conflicts.setdefault(name, []).append(entry.path)
        return False

    def get(self, name: str) -> Optional[IndexEntry]:
        return self._entries.get(name)

    def names(self, origin: Optional[str] = None) -> List[str]:
        if origin is None:
            return list(self._entries)
        return [name for name, entry in self._entries.items() if entry.origin == origin]

    def expand_wildcard(self, pattern: str) -> List[str]:
        """Return indexed names under ``pattern`` (``A.sub.*`` matches ``A.sub.X``)."""
        prefix = pattern[:-2] if pattern.endswith(".*") else pattern
        boundary = f"{prefix}."
        return [name for name in self._entries if name.startswith(boundary)]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class RequiredFile:
    """A class file the graph builder decided to include."""

    name: str
    path: Path
    origin: str
    dependencies: List[str]
    content: str

    is_core = False


@dataclass
class CoreFile:
    """Framework code that must load before any required file."""

    name: str
    kind: str
    content: str
    priority: int = 0
    path: Optional[Path] = None
    covers: FrozenSet[Path] = frozenset()

    origin = FRAMEWORK
    is_core = True


@dataclass(frozen=True)
class ManifestAsset:
    path: str
    version: str
    size: int


@dataclass(frozen=True)
class BuildManifest:
    """Content-addressed description of one build's artifacts."""

    id: str
    created: str
    js: Tuple[ManifestAsset, ...]
    css: Tuple[ManifestAsset, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "created": self.created,
            "js": [_asset_to_dict(asset) for asset in self.js],
            "css": [_asset_to_dict(asset) for asset in self.css],
        }


@dataclass(frozen=True)
class Diagnostic:
    """A recoverable problem recorded during a build."""

    kind: str
    message: str
    subject: Optional[str] = None


def _asset_to_dict(asset: ManifestAsset) -> Dict[str, object]:
    return {"path": asset.path, "version": asset.version, "size": asset.size}


__all__ = [
    "APPLICATION",
    "BuildError",
    "BuildManifest",
    "CIRCULAR_DEPENDENCY",
    "ClassDeclaration",
    "CoreFile",
    "DUPLICATE_DEFINITION",
    "Diagnostic",
    "FRAMEWORK",
    "FileIndex",
    "IndexEntry",
    "MISSING_BOOTSTRAP",
    "ManifestAsset",
    "PARSE_FAILURE",
    "RequiredFile",
    "SourceFile",
    "UNRESOLVED_DEPENDENCY",
    "VERIFICATION",
]
