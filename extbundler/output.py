"""Build artifacts: content-addressed bundle, manifest, loader and HTML page."""

from __future__ import annotations

import hashlib
import json
import shutil
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ResourceConfig
from .logging import get_logger
from .models import BuildError, BuildManifest, ManifestAsset
from .rendering import TemplateRenderer


class OutputWriteError(BuildError):
    """Raised when a build artifact cannot be written."""


def content_hash(content: str) -> str:
    """First 8 hex characters of the MD5 digest of ``content``."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()[:8]


def build_id(js: str, css: str = "") -> str:
    return content_hash(js + css)


def create_manifest(js: str, css: str = "", *, created: Optional[str] = None) -> BuildManifest:
    """Describe the final JavaScript and CSS of a build."""
    identifier = build_id(js, css)
    js_assets = (
        ManifestAsset(
            path=f"{identifier}/app.js",
            version=content_hash(js),
            size=len(js.encode("utf-8")),
        ),
    )
    css_assets: tuple[ManifestAsset, ...] = ()
    if css:
        css_assets = (
            ManifestAsset(
                path=f"{identifier}/app.css",
                version=content_hash(css),
                size=len(css.encode("utf-8")),
            ),
        )
    return BuildManifest(
        id=identifier,
        created=created or datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        js=js_assets,
        css=css_assets,
    )


def inject_assets(html: str, manifest: BuildManifest) -> str:
    """Insert stylesheet and script tags before ``</head>``."""
    tags: List[str] = [
        f'    <link rel="stylesheet" href="{asset.path}?v={asset.version}">' for asset in manifest.css
    ]
    tags.extend(
        f'    <script src="{asset.path}?v={asset.version}"></script>' for asset in manifest.js
    )
    if "</head>" not in html:
        return html
    return html.replace("</head>", "\n".join([*tags, "</head>"]), 1)


@dataclass
class WrittenArtifacts:
    """Paths produced by :meth:`OutputWriter.write`."""

    js_path: Path
    manifest_path: Path
    bootstrap_path: Path
    css_path: Optional[Path] = None
    index_path: Optional[Path] = None
    resources: List[Path] = field(default_factory=list)


class OutputWriter:
    """Writes every artifact of a build under the build directory."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.logger = get_logger("output")

    def write(
        self,
        build_dir: Path,
        manifest: BuildManifest,
        js: str,
        css: str = "",
        *,
        index_template: Optional[Path] = None,
        title: str = "Ext JS Application",
    ) -> WrittenArtifacts:
        asset_dir = build_dir / manifest.id
        js_path = asset_dir / "app.js"
        self._write_text(js_path, js)
        self.logger.info("JavaScript written to %s", js_path)

        css_path = None
        if css:
            css_path = asset_dir / "app.css"
            self._write_text(css_path, css)
            self.logger.info("CSS written to %s", css_path)

        manifest_path = build_dir / f"{manifest.id}.json"
        self._write_text(manifest_path, json.dumps(manifest.to_dict(), indent=2) + "\n")
        self.logger.info("Manifest written to %s", manifest_path)

        bootstrap_path = build_dir / "bootstrap.js"
        self._write_text(bootstrap_path, self.renderer.render("loader.js.j2", manifest=manifest))
        self.logger.info("Loader written to %s", bootstrap_path)

        index_path = self.write_index(build_dir, manifest, index_template, title=title)
        return WrittenArtifacts(
            js_path=js_path,
            manifest_path=manifest_path,
            bootstrap_path=bootstrap_path,
            css_path=css_path,
            index_path=index_path,
        )

    def write_index(
        self,
        build_dir: Path,
        manifest: BuildManifest,
        template: Optional[Path],
        *,
        title: str = "Ext JS Application",
    ) -> Optional[Path]:
        """Write ``index.html``; a failure here is logged and not fatal."""
        target = build_dir / "index.html"
        try:
            if template is not None and template.is_file():
                html = template.read_text(encoding="utf-8")
            else:
                html = self.renderer.render("index.html.j2", title=title)
            target.write_text(inject_assets(html, manifest), encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Could not update index.html: %s", exc)
            return None
        self.logger.info("Updated index.html at %s", target)
        return target

    def copy_resources(
        self, resources: Sequence[ResourceConfig], base_dir: Path, build_dir: Path
    ) -> List[Path]:
        copied: List[Path] = []
        for resource in resources:
            source = Path(resource.path)
            if not source.is_absolute():
                source = base_dir / source
            if not source.exists():
                self.logger.debug("Resource path %s does not exist; skipping", source)
                continue
            destination = build_dir / resource.output
            try:
                if source.is_dir():
                    shutil.copytree(source, destination, dirs_exist_ok=True)
                else:
                    destination.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(source, destination / source.name)
            except OSError as exc:
                raise OutputWriteError(f"Could not copy resources from {source}: {exc}") from exc
            self.logger.info("Copied resources from %s to %s", source, destination)
            copied.append(destination)
        return copied

    @staticmethod
    def _write_text(path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(f"Could not write {path}: {exc}") from exc


__all__ = [
    "OutputWriteError",
    "OutputWriter",
    "WrittenArtifacts",
    "build_id",
    "content_hash",
    "create_manifest",
    "inject_assets",
]
