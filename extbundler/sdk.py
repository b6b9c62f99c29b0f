"""Diagnostic report of a framework SDK checkout (``--debug-framework``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .logging import get_logger

CHECK_PATHS = (
    "build/ext-all.js",
    "build/ext-all-debug.js",
    "ext-all.js",
    "ext-all-debug.js",
    "packages/core/src/Ext.js",
    "packages/core/src/class/ClassManager.js",
    "classic/classic/src",
    "modern/modern/src",
)

VERSION_FILES = ("version.txt", "VERSION", "package.json")


@dataclass
class PathCheck:
    relative: str
    exists: bool
    details: List[str] = field(default_factory=list)


@dataclass
class SdkReport:
    ext_path: Path
    exists: bool
    checks: List[PathCheck] = field(default_factory=list)
    version_file: Optional[str] = None
    version_info: Optional[str] = None
    expected_version: Optional[str] = None

    def lines(self) -> List[str]:
        lines = [f"Framework path: {self.ext_path}"]
        if self.expected_version:
            lines.append(f"Version declared in workspace.json: {self.expected_version}")
        if not self.exists:
            lines.append("  framework path does not exist")
            return lines
        for check in self.checks:
            lines.append(f"  [{'ok' if check.exists else 'missing'}] {check.relative}")
            lines.extend(f"      {detail}" for detail in check.details)
        if self.version_file:
            lines.append(f"Version info from {self.version_file}:")
            lines.append(f"  {self.version_info}")
        return lines


def inspect_sdk(ext_path: Path, expected_version: Optional[str] = None) -> SdkReport:
    """Check the locations the bundler relies on inside ``ext_path``."""
    report = SdkReport(
        ext_path=ext_path, exists=ext_path.is_dir(), expected_version=expected_version
    )
    if not report.exists:
        return report

    for relative in CHECK_PATHS:
        full_path = ext_path / relative
        check = PathCheck(relative=relative, exists=full_path.exists())
        if check.exists and full_path.name == "ClassManager.js":
            check.details = _describe_class_manager(full_path)
        report.checks.append(check)

    for name in VERSION_FILES:
        candidate = ext_path / name
        if not candidate.is_file():
            continue
        try:
            report.version_info = candidate.read_text(encoding="utf-8")[:200].strip()
        except (OSError, UnicodeDecodeError):
            continue
        report.version_file = name
        break
    return report


def log_sdk_report(ext_path: Path, expected_version: Optional[str] = None) -> SdkReport:
    logger = get_logger("sdk")
    report = inspect_sdk(ext_path, expected_version)
    for line in report.lines():
        logger.info(line)
    return report


def _describe_class_manager(path: Path) -> List[str]:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return [f"could not read file: {exc}"]
    return [
        f"contains define: {'yes' if 'define' in content else 'no'}",
        f"contains ClassManager: {'yes' if 'ClassManager' in content else 'no'}",
        f"file size: {len(content) / 1024:.1f} KB",
        f"preview: {content[:100]!r}",
    ]


__all__ = ["CHECK_PATHS", "SdkReport", "inspect_sdk", "log_sdk_report"]
