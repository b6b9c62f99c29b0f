"""Static extraction of declared class relationships from registration calls."""

from __future__ import annotations

from typing import List, Optional

from tree_sitter import Node

from .logging import get_logger
from .models import ClassDeclaration, SourceFile
from .naming import ROLE_KEYS, resolve
from .parsing import (
    ParsedSource,
    iter_calls,
    object_property,
    object_string_values,
    string_list,
    string_value,
)

APPLICATION_LAUNCHER = "__APPLICATION__"


class DependencyExtractor:
    """Reads ``<namespace>.define`` / ``<namespace>.application`` configs without executing them."""

    def __init__(self, namespace: str = "Ext", app_namespace: Optional[str] = None) -> None:
        self.namespace = namespace
        self.app_namespace = app_namespace
        self.logger = get_logger("extractor")

    def declarations(self, source: SourceFile) -> List[ClassDeclaration]:
        """Return every well-formed registration call in ``source``, in document order."""
        parsed: ParsedSource = source.parsed  # type: ignore[assignment]
        results: List[ClassDeclaration] = []
        for call in iter_calls(parsed, self.namespace, "define"):
            if call.broken or len(call.arguments) < 2:
                continue
            name = string_value(parsed, call.arguments[0])
            config = call.arguments[1]
            if not name or config.type != "object":
                continue
            results.append(
                self._from_config(parsed, source, name.strip(), config, "define", self.app_namespace)
            )
        return results

    def extract(self, source: SourceFile, name: Optional[str] = None) -> Optional[ClassDeclaration]:
        """Return the declaration for ``name``; a single-class file matches any name."""
        declarations = self.declarations(source)
        if not declarations:
            return None
        if name is not None:
            for declaration in declarations:
                if declaration.name == name:
                    return declaration
            if len(declarations) > 1:
                return None
        return declarations[0]

    def application(self, source: SourceFile) -> Optional[ClassDeclaration]:
        """Return the ``<namespace>.application({...})`` launcher declared in ``source``."""
        parsed: ParsedSource = source.parsed  # type: ignore[assignment]
        for call in iter_calls(parsed, self.namespace, "application"):
            if call.broken or not call.arguments or call.arguments[0].type != "object":
                continue
            config = call.arguments[0]
            app_name = string_value(parsed, object_property(parsed, config, "name"))
            namespace = app_name.strip() if app_name else self.app_namespace
            return self._from_config(
                parsed, source, APPLICATION_LAUNCHER, config, "application", namespace
            )
        return None

    def _from_config(
        self,
        parsed: ParsedSource,
        source: SourceFile,
        name: str,
        config: Node,
        kind: str,
        namespace: Optional[str],
    ) -> ClassDeclaration:
        main_view = _single(parsed, config, "mainView")
        declaration = ClassDeclaration(
            name=name,
            source=source,
            kind=kind,
            extends=_single(parsed, config, "extend"),
            overrides=_single(parsed, config, "overrides"),
            main_view=resolve(main_view, "view", namespace) if main_view else None,
            requires=string_list(parsed, object_property(parsed, config, "requires")),
            mixins=_mixins(parsed, object_property(parsed, config, "mixins")),
            uses=string_list(parsed, object_property(parsed, config, "uses")),
            namespace=namespace,
        )
        for key, role in ROLE_KEYS.items():
            entries = string_list(parsed, object_property(parsed, config, key))
            if entries:
                declaration.roles[role] = [resolve(entry, role, namespace) for entry in entries]
        self.logger.debug(
            "%s %s declares %d dependencies", kind, name, len(declaration.dependencies)
        )
        return declaration


def _single(parsed: ParsedSource, config: Node, key: str) -> Optional[str]:
    value = string_value(parsed, object_property(parsed, config, key))
    if value is None or not value.strip():
        return None
    return value.strip()


def _mixins(parsed: ParsedSource, node: Optional[Node]) -> List[str]:
    if node is not None and node.type == "object":
        return object_string_values(parsed, node)
    return string_list(parsed, node)


__all__ = ["APPLICATION_LAUNCHER", "DependencyExtractor"]
