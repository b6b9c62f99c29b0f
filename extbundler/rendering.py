"""Jinja2 environment for the generated JavaScript and HTML artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

from jinja2 import Environment, FileSystemLoader

_DEFAULT_TEMPLATES = Path(__file__).with_name("templates")


class TemplateRenderer:
    """Renders templates from an optional override directory, then the packaged defaults."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        directories: List[str] = []
        if templates_dir is not None:
            directories.append(str(templates_dir))
        if str(_DEFAULT_TEMPLATES) not in directories:
            directories.append(str(_DEFAULT_TEMPLATES))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, template_name: str, **context: Any) -> str:
        return self._env.get_template(template_name).render(**context)


__all__ = ["TemplateRenderer"]
