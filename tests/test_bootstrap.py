"""Tests for framework core selection."""

from __future__ import annotations

from extbundler.bootstrap import BootstrapResolver
from extbundler.context import BuildContext
from extbundler.models import MISSING_BOOTSTRAP


def _write_core(project) -> None:
    project.write(
        {
            "ext/packages/core/src/Ext.js": """
                var Ext = Ext || {};
                Ext.run = function(code) { return this.execScript(code); };
                Ext.note = "this.eval stays";
            """,
            "ext/packages/core/src/class/Base.js": "Ext.define('Ext.Base', {});\n",
            "ext/packages/core/src/class/ClassManager.js": "Ext.ClassManager = { create: function() {} };\n",
            "ext/packages/core/src/Loader.js": "Ext.Loader = { setConfig: function() {} };\n",
        }
    )


def test_prebuilt_bundle_is_preferred(project, ctx: BuildContext) -> None:
    _write_core(project)
    project.write({"ext/build/ext-all-debug.js": "var Ext = {}; Ext.define = function() {};\n"})

    core = BootstrapResolver().resolve(ctx, project.path("ext"))

    assert len(core) == 1
    assert core[0].kind == "bundle"
    assert core[0].name == "__CORE_BUNDLE_ext_all_debug_js"
    assert core[0].path == project.path("ext/build/ext-all-debug.js").resolve()


def test_force_minimal_core_synthesizes_bootstrap(project, ctx: BuildContext) -> None:
    _write_core(project)
    project.write({"ext/ext-all.js": "var Ext = {};\n"})

    core = BootstrapResolver(force_minimal_core=True).resolve(ctx, project.path("ext"))

    assert [item.name for item in core] == ["__CORE_MINIMAL_BOOTSTRAP"]
    bootstrap = core[0]
    assert bootstrap.kind == "bootstrap"
    assert "(function(global)" in bootstrap.content
    assert "return global.execScript(code);" in bootstrap.content
    assert '"this.eval stays"' in bootstrap.content
    assert "Ext.define = Ext.ClassManager.create;" in bootstrap.content
    assert "Ext.Loader.setConfig({ enabled: false });" in bootstrap.content
    assert "Critical file" in bootstrap.content
    assert project.path("ext/packages/core/src/class/Base.js").resolve() in bootstrap.covers
    assert len(bootstrap.covers) == 4


def test_ultra_minimal_bootstrap_without_critical_files(project, ctx: BuildContext) -> None:
    project.path("ext").mkdir()

    core = BootstrapResolver().resolve(ctx, project.path("ext"))

    assert [item.name for item in core] == ["__CORE_ULTRA_MINIMAL_BOOTSTRAP"]
    assert "Ext.define = function" in core[0].content
    assert core[0].covers == frozenset()


def test_individual_core_files_when_synthesis_disabled(project, ctx: BuildContext) -> None:
    _write_core(project)

    core = BootstrapResolver(synthesize=False).resolve(ctx, project.path("ext"))

    assert [item.name for item in core] == [
        "__CORE_Ext_js",
        "__CORE_Base_js",
        "__CORE_ClassManager_js",
        "__CORE_Loader_js",
    ]
    assert [item.priority for item in core] == [1, 3, 4, 5]
    assert all(item.kind == "file" for item in core)


def test_missing_core_is_reported(project, ctx: BuildContext) -> None:
    project.path("ext").mkdir()

    core = BootstrapResolver(synthesize=False).resolve(ctx, project.path("ext"))

    assert core == []
    assert ctx.diagnostics_of(MISSING_BOOTSTRAP)
