"""Tests for dependency ordering and the core merge step."""

from __future__ import annotations

from pathlib import Path

from extbundler.context import BuildContext
from extbundler.models import APPLICATION, CIRCULAR_DEPENDENCY, FRAMEWORK, CoreFile, RequiredFile
from extbundler.sorter import TopologicalSorter, merge_core_and_required


def _required(name: str, *deps: str, origin: str = APPLICATION, path: str | None = None) -> RequiredFile:
    return RequiredFile(
        name=name,
        path=Path(path or f"/src/{name.replace('.', '/')}.js"),
        origin=origin,
        dependencies=list(deps),
        content=f"// {name}",
    )


def test_dependencies_precede_dependents(ctx: BuildContext) -> None:
    files = [
        _required("App.Main", "App.View", "App.Store"),
        _required("App.View", "App.Base"),
        _required("App.Store", "App.Base", "Unknown.Class"),
        _required("App.Base"),
    ]

    ordered = TopologicalSorter().sort(ctx, files)

    names = [item.name for item in ordered]
    assert sorted(names) == sorted(item.name for item in files)
    for item in files:
        for dependency in item.dependencies:
            if dependency in names:
                assert names.index(dependency) < names.index(item.name)
    assert ctx.diagnostics == []


def test_cycles_terminate_and_are_reported(ctx: BuildContext) -> None:
    files = [_required("App.A", "App.B"), _required("App.B", "App.A")]

    ordered = TopologicalSorter().sort(ctx, files)

    assert [item.name for item in ordered] == ["App.B", "App.A"]
    circular = ctx.diagnostics_of(CIRCULAR_DEPENDENCY)
    assert len(circular) == 1
    assert circular[0].subject == "App.A"


def test_core_files_come_first_in_priority_order(ctx: BuildContext) -> None:
    core = [
        CoreFile(name="__CORE_Loader_js", kind="file", content="", priority=5),
        CoreFile(name="__CORE_Ext_js", kind="file", content="", priority=1),
    ]
    files = [_required("App.Main", "App.Base"), _required("App.Base")]

    ordered = TopologicalSorter().sort(ctx, files, core)

    assert [item.name for item in ordered] == [
        "__CORE_Ext_js",
        "__CORE_Loader_js",
        "App.Base",
        "App.Main",
    ]
    assert all(item.is_core for item in ordered[:2])


def test_deep_chains_do_not_exhaust_the_stack(ctx: BuildContext) -> None:
    depth = 5000
    files = [_required(f"App.C{index}", f"App.C{index + 1}") for index in range(depth)]
    files.append(_required(f"App.C{depth}"))

    ordered = TopologicalSorter().sort(ctx, files)

    assert ordered[0].name == f"App.C{depth}"
    assert ordered[-1].name == "App.C0"


def test_merge_drops_framework_files_when_bundle_present() -> None:
    core = [CoreFile(name="__CORE_BUNDLE_ext_all_js", kind="bundle", content="", path=Path("/ext/ext-all.js"))]
    files = [
        _required("Ext.panel.Panel", origin=FRAMEWORK),
        _required("App.Main", "Ext.panel.Panel"),
    ]

    merged = merge_core_and_required(core, files)

    assert [item.name for item in merged] == ["App.Main"]


def test_merge_drops_covered_paths_and_duplicates() -> None:
    covered = Path("/ext/packages/core/src/class/Base.js")
    core = [
        CoreFile(
            name="__CORE_MINIMAL_BOOTSTRAP",
            kind="bootstrap",
            content="",
            covers=frozenset({covered}),
        )
    ]
    files = [
        _required("Ext.Base", origin=FRAMEWORK, path=str(covered)),
        _required("Ext.util.Format", origin=FRAMEWORK),
        _required("App.Main"),
        _required("App.Alias", path="/src/App/Main.js"),
    ]

    merged = merge_core_and_required(core, files)

    assert [item.name for item in merged] == ["Ext.util.Format", "App.Main"]
