"""End-to-end tests for extbundler.orchestrator."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from extbundler.config import BuildOptions
from extbundler.entrypoint import MissingEntryPointError
from extbundler.graph import UnresolvedDependencyError
from extbundler.models import UNRESOLVED_DEPENDENCY
from extbundler.orchestrator import Orchestrator


def _write_workspace(project) -> None:
    project.write(
        {
            "app.json": """
                {
                    // application descriptor
                    "name": "MyApp",
                    "classpath": ["app"]
                }
            """,
            "app.js": """
                Ext.application({
                    extend: 'MyApp.Application',
                    name: 'MyApp',
                    mainView: 'MyApp.view.main.Main'
                });
            """,
            "ext/packages/core/src/Ext.js": "var Ext = Ext || {};\n",
        }
    )
    project.define("ext/packages/core/src/class/Base.js", "Ext.Base")
    project.define("ext/classic/classic/src/app/Application.js", "Ext.app.Application", "extend: 'Ext.Base'")
    project.define("ext/classic/classic/src/panel/Panel.js", "Ext.panel.Panel", "extend: 'Ext.Base'")
    project.define(
        "app/Application.js",
        "MyApp.Application",
        """
        extend: 'Ext.app.Application',
        requires: ['MyApp.view.main.Main']
        """,
    )
    project.define(
        "app/view/main/Main.js",
        "MyApp.view.main.Main",
        """
        extend: 'Ext.panel.Panel',
        requires: ['MyApp.view.main.MainController']
        """,
    )
    project.define("app/view/main/MainController.js", "MyApp.view.main.MainController", "extend: 'Ext.Base'")


def _options(project, **overrides) -> BuildOptions:
    return BuildOptions(root=project.root, minify_js=False, minify_css=False, **overrides)


def _position(text: str, label: str) -> int:
    marker = f"// === {label} ==="
    assert marker in text
    return text.index(marker)


def test_build_writes_ordered_bundle_and_artifacts(project) -> None:
    _write_workspace(project)

    result = Orchestrator().run_build(_options(project))

    assert result.build_dir == project.root.resolve() / "build" / "production" / "MyApp"
    assert result.entry == "MyApp.Application"
    assert result.unresolved == []
    assert result.artifacts.js_path == result.build_dir / result.build_id / "app.js"
    assert result.artifacts.css_path is None
    assert result.artifacts.bootstrap_path.is_file()
    assert result.artifacts.index_path is not None

    manifest = json.loads(result.artifacts.manifest_path.read_text(encoding="utf-8"))
    assert manifest["id"] == result.build_id
    assert manifest["js"][0]["path"] == f"{result.build_id}/app.js"
    assert manifest["css"] == []

    html = result.artifacts.index_path.read_text(encoding="utf-8")
    assert f'<script src="{result.build_id}/app.js?v=' in html

    text = result.artifacts.js_path.read_text(encoding="utf-8")
    bootstrap = _position(text, "Core bootstrap: __CORE_MINIMAL_BOOTSTRAP")
    panel = _position(text, "Class: Ext.panel.Panel (Panel.js)")
    controller = _position(text, "Class: MyApp.view.main.MainController (MainController.js)")
    main = _position(text, "Class: MyApp.view.main.Main (Main.js)")
    application = _position(text, "Class: MyApp.Application (Application.js)")
    launcher = _position(text, "Class: __APPLICATION__ (app.js)")

    assert bootstrap < panel < main
    assert controller < main < application < launcher
    assert "Class: Ext.Base" not in text
    assert result.bundle.core_count == 1
    assert result.bundle.application_count == 4


def test_unresolved_dependency_warns_by_default(project) -> None:
    _write_workspace(project)
    project.define(
        "app/view/main/MainController.js",
        "MyApp.view.main.MainController",
        "requires: ['MyApp.util.Missing']",
    )

    result = Orchestrator().run_build(_options(project))

    assert result.unresolved == ["MyApp.util.Missing"]
    assert result.diagnostics[UNRESOLVED_DEPENDENCY] == 1


def test_unresolved_dependency_fails_when_configured(project) -> None:
    _write_workspace(project)
    project.define(
        "app/view/main/MainController.js",
        "MyApp.view.main.MainController",
        "requires: ['MyApp.util.Missing']",
    )

    with pytest.raises(UnresolvedDependencyError) as excinfo:
        Orchestrator().run_build(_options(project, on_unresolved="fail"))

    assert excinfo.value.name == "MyApp.util.Missing"
    assert excinfo.value.required_by == "MyApp.view.main.MainController"


def test_missing_entry_point_is_fatal(project) -> None:
    project.write({"app.json": '{"name": "MyApp"}'})

    with pytest.raises(MissingEntryPointError):
        Orchestrator().run_build(_options(project))


def test_explicit_build_dir_and_prebuilt_bundle(project) -> None:
    _write_workspace(project)
    project.write({"ext/build/ext-all-debug.js": "Ext.define = function() {};\n"})

    result = Orchestrator().run_build(_options(project, build_dir="dist"))

    assert result.build_dir == (project.root / "dist").resolve()
    text = result.artifacts.js_path.read_text(encoding="utf-8")
    _position(text, "Core bundle: __CORE_BUNDLE_ext_all_debug_js")
    assert "Class: Ext.panel.Panel" not in text
    assert result.bundle.framework_count == 0


def test_debug_framework_reports_without_building(project) -> None:
    _write_workspace(project)

    report = Orchestrator().run_debug_framework(_options(project))

    assert report.exists is True
    assert report.ext_path == (project.root / "ext").resolve()
    assert not (project.root / "build").exists()


def test_written_files_live_under_build_dir(project) -> None:
    _write_workspace(project)

    result = Orchestrator().run_build(_options(project))

    for path in (result.artifacts.js_path, result.artifacts.manifest_path):
        assert Path(path).is_relative_to(result.build_dir)


class RecordingSassCompiler:
    """Captures the theme settings the orchestrator compiles with."""

    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def compile(self, entry_point, ext_path, *, toolkit="classic", theme=None):  # type: ignore[no-untyped-def]
        self.calls.append({"entry": entry_point, "toolkit": toolkit, "theme": theme})
        return ""


def test_toolkit_and_theme_drive_sources_and_sass(project) -> None:
    _write_workspace(project)
    project.write(
        {
            "app.json": """
                {
                    "name": "MyApp",
                    "toolkit": "modern",
                    "theme": "theme-material"
                }
            """,
        }
    )
    project.define(
        "ext/modern/modern/src/panel/Panel.js",
        "Ext.panel.Panel",
        "extend: 'Ext.Base',\nxtype: 'modernpanel'",
    )
    sass = RecordingSassCompiler()

    result = Orchestrator(sass_compiler=sass).run_build(_options(project))

    text = result.artifacts.js_path.read_text(encoding="utf-8")
    assert "modernpanel" in text
    assert sass.calls == [{"entry": None, "toolkit": "modern", "theme": "theme-material"}]


def test_debug_framework_reports_workspace_version(project) -> None:
    _write_workspace(project)
    project.write(
        {"workspace.json": '{"frameworks": {"ext": {"path": "ext", "version": "7.6.0"}}}'}
    )

    report = Orchestrator().run_debug_framework(_options(project))

    assert report.expected_version == "7.6.0"
    assert report.ext_path == (project.root / "ext").resolve()
