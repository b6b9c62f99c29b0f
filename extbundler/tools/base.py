"""Shared subprocess handling for external asset tools."""

from __future__ import annotations

import subprocess
from typing import Sequence


class ToolError(RuntimeError):
    """Raised when an external tool is missing or exits unsuccessfully."""


def run_tool(args: Sequence[str], *, input_text: str | None = None, label: str) -> str:
    """Run ``args`` and return its standard output."""
    try:
        completed = subprocess.run(
            list(args),
            input=input_text,
            check=True,
            capture_output=True,
            text=True,
            encoding="utf-8",
        )
    except FileNotFoundError as exc:
        raise ToolError(f"Unable to locate {label} executable '{args[0]}'.") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        message = stderr or stdout or str(exc.returncode)
        raise ToolError(f"{label} execution failed: {message}") from exc
    return completed.stdout


__all__ = ["ToolError", "run_tool"]
