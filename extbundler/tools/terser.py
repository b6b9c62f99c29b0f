"""Adapter for the terser JavaScript minifier CLI."""

from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Dict

from ..logging import get_logger
from .base import ToolError, run_tool


def terser_options(profile: str) -> Dict[str, Any]:
    """Minifier options for ``profile``; production drops console output."""
    compress: Dict[str, Any] = {
        "drop_debugger": True,
        "unused": True,
        "dead_code": True,
        "passes": 2,
        "hoist_funs": True,
        "keep_fargs": False,
    }
    output: Dict[str, Any] = {"comments": False}
    if profile == "production":
        compress["drop_console"] = True
        compress["pure_funcs"] = ["console.log", "console.info", "console.debug", "Ext.emptyFn"]
        output["ecma"] = 2015
    else:
        compress["drop_console"] = False
        compress["pure_funcs"] = ["Ext.emptyFn"]
        output["ecma"] = 5
    return {
        "compress": compress,
        "mangle": {"reserved": ["Ext"]},
        "format": output,
    }


class TerserMinifier:
    """Minifies JavaScript through the ``terser`` executable."""

    def __init__(self, *, executable: str | None = None, profile: str = "production") -> None:
        self.executable = executable or "terser"
        self.profile = profile
        self.logger = get_logger("tools.terser")

    def minify(self, code: str) -> str:
        """Return minified ``code``; on failure the original code is returned."""
        if not code:
            return code
        self.logger.info("Minifying JavaScript (%s profile)", self.profile)
        try:
            minified = self._run(code)
        except ToolError as exc:
            self.logger.warning("JavaScript minification failed: %s", exc)
            return code
        if not minified.strip():
            self.logger.warning("terser returned no output; keeping unminified JavaScript")
            return code
        reduction = (1 - len(minified) / len(code)) * 100
        self.logger.info("Reduced JavaScript size by %.1f%%", reduction)
        return minified

    def _run(self, code: str) -> str:
        handle, config_path = tempfile.mkstemp(prefix="extbundler-terser-", suffix=".json")
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as config_file:
                json.dump(terser_options(self.profile), config_file)
            return run_tool(
                [self.executable, "--config-file", config_path],
                input_text=code,
                label="terser",
            )
        finally:
            os.unlink(config_path)


__all__ = ["TerserMinifier", "terser_options"]
