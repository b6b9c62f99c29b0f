"""Pass-scoped build state shared by every stage of one build."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional

from .logging import get_logger
from .models import Diagnostic, FileIndex, SourceFile


class BuildContext:
    """Owns the file index, content cache and diagnostics for a single build.

    Stages receive the context explicitly; nothing is shared between builds.
    """

    def __init__(self, *, namespace: str = "Ext", app_namespace: Optional[str] = None) -> None:
        self.namespace = namespace
        self.app_namespace = app_namespace
        self.index = FileIndex()
        self.diagnostics: List[Diagnostic] = []
        self._sources: Dict[Path, SourceFile] = {}
        self.logger = get_logger("context")

    def read(self, path: Path) -> SourceFile:
        """Return the cached source for ``path``, reading it on first access.

        Raises ``OSError`` or ``UnicodeDecodeError`` when the file cannot be read.
        """
        key = path.resolve()
        cached = self._sources.get(key)
        if cached is not None:
            return cached
        source = SourceFile(path=key, text=key.read_text(encoding="utf-8"))
        self._sources[key] = source
        return source

    def report(
        self,
        kind: str,
        message: str,
        *,
        subject: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(kind=kind, message=message, subject=subject)
        self.diagnostics.append(diagnostic)
        (logger or self.logger).warning(message)
        return diagnostic

    def diagnostics_of(self, kind: str) -> List[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.kind == kind]

    def summary(self) -> Dict[str, int]:
        return dict(Counter(diagnostic.kind for diagnostic in self.diagnostics))


__all__ = ["BuildContext"]
