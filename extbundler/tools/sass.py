"""Adapter for the dart-sass compiler CLI."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from ..logging import get_logger
from .base import ToolError, run_tool

_THEME_LOAD_PATHS = (
    ("packages",),
    ("classic", "theme-triton", "sass"),
    ("classic", "theme-neptune", "sass"),
    ("classic", "theme-classic", "sass"),
)


def find_sass_entry_point(sass_paths: Sequence[Path], app_dir: Path) -> Optional[Path]:
    """Return the first existing Sass entry point, or ``None``."""
    candidates: List[Path] = [path / "app.scss" for path in sass_paths]
    candidates.extend(path / "all.scss" for path in sass_paths)
    candidates.append(app_dir / "sass" / "app.scss")
    candidates.append(app_dir / "resources" / "sass" / "app.scss")
    for candidate in candidates:
        if candidate.is_file():
            get_logger("tools.sass").info("Found Sass entry point: %s", candidate)
            return candidate
    return None


class SassCompiler:
    """Compiles the application's Sass sources with the ``sass`` executable."""

    def __init__(self, *, executable: str | None = None, profile: str = "production") -> None:
        self.executable = executable or "sass"
        self.profile = profile
        self.logger = get_logger("tools.sass")

    def load_paths(
        self,
        entry_point: Path,
        ext_path: Path,
        *,
        toolkit: str = "classic",
        theme: Optional[str] = None,
    ) -> List[Path]:
        """Entry directory, then the configured theme, then the stock themes."""
        paths = [entry_point.parent]
        theme_parts = [(toolkit, theme, "sass")] if theme else []
        for parts in (*theme_parts, *_THEME_LOAD_PATHS):
            candidate = ext_path.joinpath(*parts)
            if candidate.is_dir() and candidate not in paths:
                paths.append(candidate)
        return paths

    def compile(
        self,
        entry_point: Optional[Path],
        ext_path: Path,
        *,
        toolkit: str = "classic",
        theme: Optional[str] = None,
    ) -> str:
        """Return compiled CSS; an error or missing entry point yields an empty string."""
        if entry_point is None:
            self.logger.warning("No Sass entry point found, skipping CSS compilation")
            return ""
        args = [self.executable]
        for path in self.load_paths(entry_point, ext_path, toolkit=toolkit, theme=theme):
            args.append(f"--load-path={path}")
        if self.profile == "production":
            args.extend(["--style=compressed", "--no-source-map"])
        else:
            args.extend(["--style=expanded", "--embed-source-map"])
        args.append(str(entry_point))

        self.logger.info("Compiling Sass from %s", entry_point)
        try:
            css = run_tool(args, label="sass")
        except ToolError as exc:
            self.logger.error("Sass compilation failed: %s", exc)
            return ""
        self.logger.info("Sass compilation completed")
        return css


__all__ = ["SassCompiler", "find_sass_entry_point"]
