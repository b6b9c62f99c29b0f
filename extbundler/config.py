"""Configuration loading for extbundler (app.json, workspace.json and build options)."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .logging import get_logger

BUILD_PROFILES = ("development", "testing", "production")
UNRESOLVED_POLICIES = ("warn", "fail")

DEFAULT_APP_NAME = "MyApp"
DEFAULT_TOOLKIT = "classic"
DEFAULT_THEME = "theme-triton"

_PLACEHOLDER = re.compile(r"\$\{([a-zA-Z0-9_.]+)\}")


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed."""


@dataclass
class BuildOptions:
    """Options of a single build, as given on the command line."""

    root: Path = field(default_factory=Path.cwd)
    app_json_path: str = "./app.json"
    workspace_json_path: str = "./workspace.json"
    build_dir: Optional[str] = None
    build_profile: str = "production"
    index_path: str = "./index.html"
    ext_path: Optional[str] = None
    minify_js: bool = True
    minify_css: bool = True
    force_minimal_core: bool = False
    synthesize_bootstrap: bool = True
    debug_framework: bool = False
    on_unresolved: str = "warn"
    runtime_define_guard: bool = False
    namespace: str = "Ext"
    templates_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.build_profile not in BUILD_PROFILES:
            raise ConfigError(
                f"Unknown build profile {self.build_profile!r}; expected one of {', '.join(BUILD_PROFILES)}"
            )
        if self.on_unresolved not in UNRESOLVED_POLICIES:
            raise ConfigError(
                f"Unknown unresolved policy {self.on_unresolved!r}; expected 'warn' or 'fail'"
            )

    @property
    def production(self) -> bool:
        return self.build_profile == "production"

    def resolve(self, value: str | Path) -> Path:
        """Return ``value`` as an absolute path relative to the build root."""
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = self.root / path
        return path.resolve()


@dataclass
class SassConfig:
    etc: List[str] = field(default_factory=list)
    var: List[str] = field(default_factory=list)
    src: List[str] = field(default_factory=list)


@dataclass
class ResourceConfig:
    path: str
    output: str = "resources"


@dataclass
class AppConfig:
    """Application settings from app.json."""

    directory: Path
    name: str = DEFAULT_APP_NAME
    namespace: Optional[str] = None
    toolkit: str = DEFAULT_TOOLKIT
    theme: str = DEFAULT_THEME
    classpath: List[str] = field(default_factory=lambda: ["app"])
    overrides: List[str] = field(default_factory=lambda: ["overrides"])
    sass: SassConfig = field(default_factory=SassConfig)
    resources: List[ResourceConfig] = field(default_factory=list)
    loaded: bool = False

    @property
    def effective_namespace(self) -> str:
        return self.namespace or self.name

    def sass_paths(self) -> List[str]:
        """Sass source directories in lookup order (``src``, ``var``, ``etc``)."""
        paths: List[str] = []
        for entry in (*self.sass.src, *self.sass.var, *self.sass.etc):
            directory = os.path.dirname(entry) if entry.endswith(".scss") else entry
            if directory and directory not in paths:
                paths.append(directory)
        return paths


@dataclass
class WorkspaceConfig:
    """Workspace settings from workspace.json."""

    directory: Path
    ext_path: Optional[str] = None
    ext_version: Optional[str] = None
    package_dirs: List[str] = field(default_factory=list)
    build_dir: Optional[str] = None
    loaded: bool = False


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside of string literals."""
    result: List[str] = []
    index = 0
    length = len(text)
    in_string = False
    while index < length:
        char = text[index]
        if in_string:
            result.append(char)
            if char == "\\" and index + 1 < length:
                result.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
            result.append(char)
            index += 1
            continue
        if text.startswith("//", index):
            end = text.find("\n", index)
            index = length if end == -1 else end
            continue
        if text.startswith("/*", index):
            end = text.find("*/", index + 2)
            index = length if end == -1 else end + 2
            continue
        result.append(char)
        index += 1
    return "".join(result)


def read_json_with_comments(path: Path) -> Dict[str, Any]:
    """Parse a JSON-with-comments file into a mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    content = strip_json_comments(text)
    if not content.strip():
        return {}
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        preview = content[:300]
        raise ConfigError(
            f"JSON parsing error in {path.name} at line {exc.lineno} column {exc.colno}: "
            f"{exc.msg}\nContent preview:\n{preview}..."
        ) from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain an object at the root")
    return data


def expand_placeholders(value: str, variables: Mapping[str, str]) -> str:
    """Replace known ``${name}`` placeholders; unknown ones are left untouched."""

    def _replace(match: re.Match[str]) -> str:
        return variables.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(_replace, value)


def load_app_config(path: Path, *, workspace_dir: Optional[Path] = None) -> AppConfig:
    """Load app.json; any failure falls back to the built-in defaults."""
    logger = get_logger("config")
    directory = path.parent.resolve()
    data = _load_or_default(path, "app.json")
    if data is None:
        logger.info("Using default app configuration")
        return _default_app_config(directory)

    variables = {"app.dir": str(directory), "workspace.dir": str(workspace_dir or directory)}
    name = _as_str(data.get("name")) or DEFAULT_APP_NAME
    config = AppConfig(
        directory=directory,
        name=name,
        namespace=_as_str(data.get("namespace")) or name,
        toolkit=_as_str(data.get("toolkit")) or DEFAULT_TOOLKIT,
        theme=_as_str(data.get("theme")) or DEFAULT_THEME,
        classpath=_expand_all(_as_path_list(data.get("classpath")), variables) or ["app"],
        overrides=_expand_all(_as_path_list(data.get("overrides")), variables),
        loaded=True,
    )

    sass_data = _as_dict(data.get("sass"))
    config.sass = SassConfig(
        etc=_expand_all(_as_path_list(sass_data.get("etc")), variables),
        var=_expand_all(_as_path_list(sass_data.get("var")), variables),
        src=_expand_all(_as_path_list(sass_data.get("src")), variables),
    )

    for item in _as_list(data.get("resources")):
        if isinstance(item, str):
            config.resources.append(ResourceConfig(path=expand_placeholders(item, variables)))
            continue
        resource = _as_dict(item)
        resource_path = _as_str(resource.get("path"))
        if not resource_path:
            continue
        config.resources.append(
            ResourceConfig(
                path=expand_placeholders(resource_path, variables),
                output=_as_str(resource.get("output")) or "resources",
            )
        )
    return config


def load_workspace_config(path: Path) -> WorkspaceConfig:
    """Load workspace.json; any failure falls back to the built-in defaults."""
    logger = get_logger("config")
    directory = path.parent.resolve()
    data = _load_or_default(path, "workspace.json")
    if data is None:
        logger.info("Using default workspace configuration")
        return _default_workspace_config(directory)

    variables = {"workspace.dir": str(directory)}
    frameworks = _as_dict(data.get("frameworks"))
    ext = frameworks.get("ext")
    ext_data = _as_dict(ext)
    ext_path = _as_str(ext) if isinstance(ext, str) else _as_str(ext_data.get("path"))
    packages = _as_dict(data.get("packages"))
    build = _as_dict(data.get("build"))
    build_dir = _as_str(build.get("dir"))
    return WorkspaceConfig(
        directory=directory,
        ext_path=expand_placeholders(ext_path, variables) if ext_path else None,
        ext_version=_as_str(ext_data.get("version")),
        package_dirs=_expand_all(_as_path_list(packages.get("dir")), variables),
        build_dir=expand_placeholders(build_dir, variables) if build_dir else None,
        loaded=True,
    )


def _load_or_default(path: Path, label: str) -> Optional[Dict[str, Any]]:
    logger = get_logger("config")
    if not path.is_file():
        logger.debug("%s not found at %s", label, path)
        return None
    try:
        data = read_json_with_comments(path)
    except ConfigError as exc:
        logger.error("%s", exc)
        logger.error("Please fix the syntax errors in %s", path)
        return None
    logger.info("Loaded %s from %s", label, path)
    return data


def _default_app_config(directory: Path) -> AppConfig:
    return AppConfig(
        directory=directory,
        sass=SassConfig(
            etc=["sass/etc/all.scss"],
            var=["sass/var/all.scss"],
            src=["sass/src/all.scss"],
        ),
        resources=[ResourceConfig(path="resources", output="shared")],
    )


def _default_workspace_config(directory: Path) -> WorkspaceConfig:
    return WorkspaceConfig(
        directory=directory,
        ext_path="ext",
        ext_version="7.0.0",
        package_dirs=[str(directory / "packages" / "local"), str(directory / "packages")],
        build_dir=str(directory / "build"),
    )


def _expand_all(values: Sequence[str], variables: Mapping[str, str]) -> List[str]:
    return [expand_placeholders(value, variables) for value in values]


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_path_list(value: Any) -> List[str]:
    """Coerce a string, comma separated string or list into a list of paths."""
    result: List[str] = []
    for item in _as_list(value):
        text = _as_str(item)
        if text is None:
            continue
        for part in text.split(","):
            part = part.strip()
            if part:
                result.append(part)
    return result


__all__ = [
    "AppConfig",
    "BUILD_PROFILES",
    "BuildOptions",
    "ConfigError",
    "ResourceConfig",
    "SassConfig",
    "UNRESOLVED_POLICIES",
    "WorkspaceConfig",
    "expand_placeholders",
    "load_app_config",
    "load_workspace_config",
    "read_json_with_comments",
    "strip_json_comments",
]
