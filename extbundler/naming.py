"""Qualified-name helpers: shorthand resolution and wildcard detection."""

from __future__ import annotations

from typing import Optional

# Config keys holding role-categorized class lists, mapped to their namespace segment.
ROLE_KEYS = {
    "controllers": "controller",
    "models": "model",
    "views": "view",
    "stores": "store",
    "profiles": "profile",
}


def resolve(shorthand: str, role: str, namespace: Optional[str]) -> str:
    """Expand a role shorthand into a qualified name.

    ``.Foo`` and ``Foo`` become ``<namespace>.<role>.Foo``; a dotted name is
    already qualified and is returned unchanged.
    """
    name = shorthand.strip()
    if name.startswith("."):
        relative = name[1:]
    elif "." not in name:
        relative = name
    else:
        return name
    if not namespace:
        return relative
    return f"{namespace}.{role}.{relative}"


def is_wildcard(name: str) -> bool:
    return name.endswith(".*")


__all__ = ["ROLE_KEYS", "is_wildcard", "resolve"]
