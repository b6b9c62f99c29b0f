"""Pipeline orchestration for a single bundle build."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

from .assembler import AssembledBundle, BundleAssembler, verify_bundle
from .bootstrap import BootstrapResolver
from .config import (
    AppConfig,
    BuildOptions,
    WorkspaceConfig,
    load_app_config,
    load_workspace_config,
)
from .context import BuildContext
from .entrypoint import EntryPoint, find_entry_file, resolve_entry_point
from .extractor import APPLICATION_LAUNCHER
from .graph import DependencyGraphBuilder
from .indexer import SourceIndexer, SourceRoot, framework_roots
from .logging import get_logger
from .models import APPLICATION, BuildError, BuildManifest, RequiredFile
from .output import OutputWriter, WrittenArtifacts, create_manifest
from .rendering import TemplateRenderer
from .sdk import SdkReport, log_sdk_report
from .sorter import OrderedFile, TopologicalSorter, merge_core_and_required
from .tools import CleanCssMinifier, SassCompiler, TerserMinifier, find_sass_entry_point


@dataclass
class BuildResult:
    """Outcome of a successful build."""

    build_id: str
    build_dir: Path
    manifest: BuildManifest
    artifacts: WrittenArtifacts
    bundle: AssembledBundle
    entry: str
    required_classes: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)
    diagnostics: Dict[str, int] = field(default_factory=dict)
    duration: float = 0.0


class Orchestrator:
    """Runs indexing, resolution, ordering, assembly and output for one build."""

    def __init__(
        self,
        indexer: SourceIndexer | None = None,
        sorter: TopologicalSorter | None = None,
        writer: OutputWriter | None = None,
        js_minifier: TerserMinifier | None = None,
        sass_compiler: SassCompiler | None = None,
        css_minifier: CleanCssMinifier | None = None,
    ) -> None:
        self.indexer = indexer or SourceIndexer()
        self.sorter = sorter or TopologicalSorter()
        self.writer = writer
        self.js_minifier = js_minifier
        self.sass_compiler = sass_compiler
        self.css_minifier = css_minifier
        self.logger = get_logger("orchestrator")

    def run_build(self, options: BuildOptions) -> BuildResult:
        """Build the application described by ``options``."""
        started = time.monotonic()
        self.logger.info("Starting %s build in %s", options.build_profile, options.root)
        try:
            return self._build(options, started)
        except BuildError as exc:
            self._log_exception("Build failed", exc)
            raise

    def run_debug_framework(self, options: BuildOptions) -> SdkReport:
        """Report on the framework SDK instead of building."""
        workspace = load_workspace_config(options.resolve(options.workspace_json_path))
        expected_version = workspace.ext_version if workspace.loaded else None
        return log_sdk_report(self._resolve_ext_path(options, workspace), expected_version)

    def _build(self, options: BuildOptions, started: float) -> BuildResult:
        workspace = load_workspace_config(options.resolve(options.workspace_json_path))
        app = load_app_config(
            options.resolve(options.app_json_path), workspace_dir=workspace.directory
        )
        ext_path = self._resolve_ext_path(options, workspace)
        build_dir = self._resolve_build_dir(options, workspace, app)
        renderer = TemplateRenderer(options.templates_dir)
        self.logger.debug("Framework path: %s", ext_path)
        if workspace.loaded and workspace.ext_version:
            self.logger.info("Workspace framework version: %s", workspace.ext_version)
        self.logger.debug("Toolkit: %s, theme: %s", app.toolkit, app.theme)
        self.logger.debug("Build directory: %s", build_dir)

        ctx = BuildContext(namespace=options.namespace, app_namespace=app.effective_namespace)

        classpath = self._app_dirs(app, app.classpath)
        roots = [
            *framework_roots(ext_path, app.toolkit),
            *(SourceRoot(path=path) for path in classpath),
            *(SourceRoot(path=path) for path in self._app_dirs(app, app.overrides)),
            *(SourceRoot(path=path) for path in self._package_dirs(workspace)),
        ]
        self.indexer.index(ctx, roots)

        entry_file = find_entry_file(app.directory, classpath)
        entry = resolve_entry_point(ctx, entry_file)
        self.logger.info("Starting dependency analysis from %s", entry.label)

        resolver = BootstrapResolver(
            force_minimal_core=options.force_minimal_core,
            synthesize=options.synthesize_bootstrap,
            renderer=renderer,
        )
        core = resolver.resolve(ctx, ext_path)

        graph = DependencyGraphBuilder(
            fail_on_unresolved=options.on_unresolved == "fail"
        ).build(ctx, entry.class_name, roots=entry.roots, entry_file=entry.file_path)

        required = merge_core_and_required(core, graph.required_files)
        ordered = self._append_launcher(ctx, self.sorter.sort(ctx, required, core), entry)

        assembler = BundleAssembler(renderer, define_guard=options.runtime_define_guard)
        bundle = assembler.assemble(ctx, ordered, entry=entry.label)
        if ordered:
            verify_bundle(ctx, bundle.framework_text)
        if not core:
            self.logger.error(
                "No framework core files were included; check that the framework path "
                "points to a valid SDK (build/ext-all-debug.js or packages/core/src/)"
            )

        js = bundle.text
        if options.minify_js:
            js = (self.js_minifier or TerserMinifier(profile=options.build_profile)).minify(js)
        css = self._compile_css(options, app, ext_path)

        manifest = create_manifest(js, css)
        writer = self.writer or OutputWriter(renderer)
        artifacts = writer.write(
            build_dir,
            manifest,
            js,
            css,
            index_template=options.resolve(options.index_path),
            title=app.name,
        )
        artifacts.resources = writer.copy_resources(app.resources, app.directory, build_dir)

        result = BuildResult(
            build_id=manifest.id,
            build_dir=build_dir,
            manifest=manifest,
            artifacts=artifacts,
            bundle=bundle,
            entry=entry.label,
            required_classes=list(graph.required_class_names),
            unresolved=list(graph.unresolved),
            diagnostics=ctx.summary(),
            duration=time.monotonic() - started,
        )
        self._log_summary(result, js_size=len(js.encode("utf-8")), css_size=len(css.encode("utf-8")))
        return result

    def _compile_css(self, options: BuildOptions, app: AppConfig, ext_path: Path) -> str:
        sass_paths = [self._under(app.directory, path) for path in app.sass_paths()]
        entry_point = find_sass_entry_point(sass_paths, app.directory)
        compiler = self.sass_compiler or SassCompiler(profile=options.build_profile)
        css = compiler.compile(entry_point, ext_path, toolkit=app.toolkit, theme=app.theme)
        if options.minify_css:
            css = (self.css_minifier or CleanCssMinifier(profile=options.build_profile)).minify(css)
        return css

    def _append_launcher(
        self, ctx: BuildContext, ordered: List[OrderedFile], entry: EntryPoint
    ) -> List[OrderedFile]:
        if entry.launcher is None:
            return ordered
        if any(item.path == entry.file_path for item in ordered):
            return ordered
        ordered.append(
            RequiredFile(
                name=APPLICATION_LAUNCHER,
                path=entry.file_path,
                origin=APPLICATION,
                dependencies=[],
                content=entry.launcher.source.text,
            )
        )
        self.logger.debug("Appended application launcher %s", entry.file_path.name)
        return ordered

    def _resolve_ext_path(self, options: BuildOptions, workspace: WorkspaceConfig) -> Path:
        if options.ext_path:
            return options.resolve(options.ext_path)
        if workspace.loaded and workspace.ext_path:
            return self._under(workspace.directory, workspace.ext_path)
        return options.resolve("ext")

    def _resolve_build_dir(
        self, options: BuildOptions, workspace: WorkspaceConfig, app: AppConfig
    ) -> Path:
        if options.build_dir:
            return options.resolve(options.build_dir)
        base = self._under(workspace.directory, workspace.build_dir or "build")
        return base / options.build_profile / app.name

    def _app_dirs(self, app: AppConfig, entries: Sequence[str]) -> List[Path]:
        return self._existing_dirs(app.directory, entries)

    def _package_dirs(self, workspace: WorkspaceConfig) -> List[Path]:
        return self._existing_dirs(workspace.directory, workspace.package_dirs)

    def _existing_dirs(self, base: Path, entries: Sequence[str]) -> List[Path]:
        directories: List[Path] = []
        for entry in entries:
            if "${" in entry:
                self.logger.warning("Skipping path with unresolved placeholder: %s", entry)
                continue
            path = self._under(base, entry)
            if path.is_dir() and path not in directories:
                directories.append(path)
        return directories

    @staticmethod
    def _under(base: Path, value: str | Path) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = base / path
        return path.resolve()

    def _log_summary(self, result: BuildResult, *, js_size: int, css_size: int) -> None:
        bundle = result.bundle
        self.logger.info("Build completed in %.2fs", result.duration)
        self.logger.info("  Entry point: %s", result.entry)
        self.logger.info("  Core files in output: %d", bundle.core_count)
        self.logger.info("  Application classes in output: %d", bundle.application_count)
        self.logger.info("  Framework classes (non-core) in output: %d", bundle.framework_count)
        if js_size != bundle.size_bytes:
            self.logger.info(
                "  JavaScript: %.2f MB (minified from %.2f MB)",
                js_size / 1024 / 1024,
                bundle.size_bytes / 1024 / 1024,
            )
        else:
            self.logger.info("  JavaScript: %.2f MB", js_size / 1024 / 1024)
        self.logger.info("  CSS: %.2f MB", css_size / 1024 / 1024)
        self.logger.info("  Build ID: %s", result.build_id)
        self.logger.info("  Output: %s", result.build_dir)
        if result.diagnostics:
            for kind, count in sorted(result.diagnostics.items()):
                self.logger.warning("  %s: %d", kind, count)

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = ["BuildResult", "Orchestrator"]
