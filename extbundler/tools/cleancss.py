"""Adapter for the clean-css CLI."""

from __future__ import annotations

from ..logging import get_logger
from .base import ToolError, run_tool


class CleanCssMinifier:
    """Minifies CSS with ``cleancss -O2``; only production builds are minified."""

    def __init__(self, *, executable: str | None = None, profile: str = "production") -> None:
        self.executable = executable or "cleancss"
        self.profile = profile
        self.logger = get_logger("tools.cleancss")

    def minify(self, css: str) -> str:
        if self.profile != "production" or not css:
            return css
        self.logger.info("Minifying CSS")
        try:
            minified = run_tool([self.executable, "-O2"], input_text=css, label="clean-css")
        except ToolError as exc:
            self.logger.warning("CSS minification failed: %s", exc)
            return css
        if not minified.strip():
            self.logger.warning("clean-css returned no output; keeping unminified CSS")
            return css
        self.logger.info("Reduced CSS size by %.1f%%", (1 - len(minified) / len(css)) * 100)
        return minified


__all__ = ["CleanCssMinifier"]
