"""Tree-sitter powered JavaScript parsing helpers."""

from __future__ import annotations

import codecs
import re
from bisect import bisect_left
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

JS_LANGUAGE = Language(tree_sitter_javascript.language())

_parser: Optional[Parser] = None


def _get_parser() -> Parser:
    global _parser
    if _parser is None:
        _parser = Parser(JS_LANGUAGE)
    return _parser


@dataclass
class ParsedSource:
    """Syntax tree plus the exact bytes it was parsed from."""

    tree: Tree
    source: bytes

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def has_error(self) -> bool:
        return self.tree.root_node.has_error

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


@dataclass
class CallSite:
    """A ``<namespace>.<method>(...)`` call expression."""

    node: Node
    arguments: List[Node]

    @property
    def broken(self) -> bool:
        return self.node.has_error


def parse_source(text: str) -> ParsedSource:
    source = text.encode("utf-8")
    return ParsedSource(tree=_get_parser().parse(source), source=source)


def iter_calls(parsed: ParsedSource, namespace: str, method: str) -> Iterator[CallSite]:
    """Yield matching call expressions in document order.

    Only subtrees whose byte range contains an occurrence of ``method`` are
    descended into, which keeps large framework files cheap to scan.
    """
    pattern = re.compile(rb"\b" + re.escape(method.encode("utf-8")) + rb"\b")
    offsets = [match.start() for match in pattern.finditer(parsed.source)]
    if not offsets:
        return
    stack = [parsed.root]
    while stack:
        node = stack.pop()
        if node.type == "call_expression" and _is_member_call(parsed, node, namespace, method):
            arguments = node.child_by_field_name("arguments")
            yield CallSite(node=node, arguments=_named(arguments) if arguments is not None else [])
        stack.extend(
            child
            for child in reversed(node.children)
            if _spans_offset(offsets, child.start_byte, child.end_byte)
        )


def _is_member_call(parsed: ParsedSource, node: Node, namespace: str, method: str) -> bool:
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return False
    target = callee.child_by_field_name("object")
    prop = callee.child_by_field_name("property")
    if target is None or prop is None:
        return False
    return parsed.text(prop) == method and parsed.text(target) == namespace


def string_value(parsed: ParsedSource, node: Optional[Node]) -> Optional[str]:
    """Return the value of a string literal or substitution-free template literal."""
    if node is None:
        return None
    if node.type == "string":
        parts: List[str] = []
        for child in node.named_children:
            if child.type == "string_fragment":
                parts.append(parsed.text(child))
            elif child.type == "escape_sequence":
                parts.append(_decode_escape(parsed.text(child)))
        return "".join(parts)
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        return parsed.text(node)[1:-1]
    return None


def string_list(parsed: ParsedSource, node: Optional[Node]) -> List[str]:
    """Read a string or an array of strings; non-literal elements are ignored."""
    if node is None:
        return []
    if node.type == "array":
        values = (string_value(parsed, element) for element in _named(node))
        return [value for value in values if value and value.strip()]
    single = string_value(parsed, node)
    return [single] if single and single.strip() else []


def object_property(parsed: ParsedSource, node: Optional[Node], key: str) -> Optional[Node]:
    """Return the value node for ``key`` in an object literal."""
    if node is None or node.type != "object":
        return None
    for child in _named(node):
        if child.type != "pair":
            continue
        key_node = child.child_by_field_name("key")
        if key_node is None:
            continue
        if key_node.type in {"property_identifier", "identifier"}:
            name = parsed.text(key_node)
        else:
            name = string_value(parsed, key_node)
        if name == key:
            return child.child_by_field_name("value")
    return None


def object_string_values(parsed: ParsedSource, node: Optional[Node]) -> List[str]:
    """Return the string values of an object literal (``{observable: 'Ext.util.Observable'}``)."""
    if node is None or node.type != "object":
        return []
    values: List[str] = []
    for child in _named(node):
        if child.type != "pair":
            continue
        value = string_value(parsed, child.child_by_field_name("value"))
        if value and value.strip():
            values.append(value)
    return values


def this_member_spans(parsed: ParsedSource, names: Iterable[str]) -> List[tuple[int, int]]:
    """Byte spans of ``this`` in ``this.<name>`` member expressions (not strings or comments)."""
    wanted = "|".join(re.escape(name) for name in sorted(set(names)))
    if not wanted:
        return []
    pattern = re.compile(rb"\bthis\s*\.\s*(?:" + wanted.encode("utf-8") + rb")\b")
    spans: List[tuple[int, int]] = []
    for match in pattern.finditer(parsed.source):
        start = match.start()
        node = parsed.root.descendant_for_byte_range(start, start + 4)
        if node is None or node.type != "this":
            continue
        parent = node.parent
        if parent is None or parent.type != "member_expression":
            continue
        spans.append((node.start_byte, node.end_byte))
    return spans


def _spans_offset(offsets: List[int], start: int, end: int) -> bool:
    position = bisect_left(offsets, start)
    return position < len(offsets) and offsets[position] < end


def _named(node: Node) -> List[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def _decode_escape(sequence: str) -> str:
    try:
        return codecs.decode(sequence, "unicode_escape")
    except UnicodeDecodeError:
        return sequence[1:]


__all__ = [
    "CallSite",
    "JS_LANGUAGE",
    "ParsedSource",
    "iter_calls",
    "object_property",
    "object_string_values",
    "parse_source",
    "string_list",
    "string_value",
    "this_member_spans",
]
