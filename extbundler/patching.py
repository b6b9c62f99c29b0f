"""Rewrites ``this.<primitive>`` references to the explicit ``global`` binding."""

from __future__ import annotations

from typing import Iterable

from .parsing import parse_source, this_member_spans

# Platform primitives framework code reaches through an implicit global ``this``.
FRAMEWORK_PRIMITIVES = ("execScript", "eval", "setTimeout", "setInterval")
APPLICATION_PRIMITIVES = ("execScript", "eval")


def patch_context(text: str, primitives: Iterable[str] = FRAMEWORK_PRIMITIVES) -> str:
    """Return ``text`` with ``this.<primitive>`` member expressions bound to ``global``.

    Occurrences inside strings and comments are left alone.
    """
    names = tuple(primitives)
    if "this" not in text or not any(name in text for name in names):
        return text
    parsed = parse_source(text)
    spans = this_member_spans(parsed, names)
    if not spans:
        return text
    patched = bytearray(parsed.source)
    for start, end in reversed(spans):
        patched[start:end] = b"global"
    return patched.decode("utf-8")


__all__ = ["APPLICATION_PRIMITIVES", "FRAMEWORK_PRIMITIVES", "patch_context"]
