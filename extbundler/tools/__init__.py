"""External asset tools invoked as subprocesses."""

from .base import ToolError, run_tool
from .cleancss import CleanCssMinifier
from .sass import SassCompiler, find_sass_entry_point
from .terser import TerserMinifier, terser_options

__all__ = [
    "CleanCssMinifier",
    "SassCompiler",
    "TerserMinifier",
    "ToolError",
    "find_sass_entry_point",
    "run_tool",
    "terser_options",
]
