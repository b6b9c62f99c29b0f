"""Tests for bundle assembly and verification."""

from __future__ import annotations

from pathlib import Path

import pytest

from extbundler.assembler import BundleAssembler, BundleVerificationError, verify_bundle
from extbundler.context import BuildContext
from extbundler.models import (
    APPLICATION,
    DUPLICATE_DEFINITION,
    FRAMEWORK,
    VERIFICATION,
    CoreFile,
    RequiredFile,
)


def _required(name: str, content: str, origin: str = APPLICATION) -> RequiredFile:
    return RequiredFile(
        name=name,
        path=Path(f"/src/{name}.js"),
        origin=origin,
        dependencies=[],
        content=content,
    )


def test_core_files_are_wrapped_and_precede_application(ctx: BuildContext) -> None:
    ordered = [
        CoreFile(
            name="__CORE_Ext_js",
            kind="file",
            content="var Ext = {}; Ext.define = function() { this.setTimeout(f, 1); };",
            priority=1,
            path=Path("/ext/Ext.js"),
        ),
        _required("App.Main", "Ext.define('App.Main', { run: function() { this.setTimeout(f); this.eval(x); } });"),
    ]

    bundle = BundleAssembler().assemble(ctx, ordered)

    text = bundle.text
    assert text.index("// === Core file: Ext.js ===") < text.index("// === Class: App.Main")
    assert "(function() {\nvar Ext = {};" in text
    assert "}).call(global);" in text
    assert "Ext.define = function() { global.setTimeout(f, 1); };" in text
    assert "this.setTimeout(f); global.eval(x);" in text
    assert "verifySetup()" in text
    assert bundle.core_count == 1
    assert bundle.application_count == 1
    assert bundle.framework_count == 0
    assert bundle.size_bytes == len(text.encode("utf-8"))


def test_isolated_bootstrap_is_inserted_verbatim(ctx: BuildContext) -> None:
    content = "(function(global) { this.execScript; })(this);"
    ordered = [CoreFile(name="__CORE_MINIMAL_BOOTSTRAP", kind="bootstrap", content=content)]

    bundle = BundleAssembler().assemble(ctx, ordered)

    assert content in bundle.text


def test_duplicates_are_refused(ctx: BuildContext) -> None:
    first = _required("App.Main", "// first")
    ordered = [
        first,
        _required("App.Main", "// second"),
        RequiredFile(
            name="App.Alias",
            path=first.path,
            origin=APPLICATION,
            dependencies=[],
            content="// alias",
        ),
    ]

    bundle = BundleAssembler().assemble(ctx, ordered)

    assert "// first" in bundle.text
    assert "// second" not in bundle.text
    assert "// alias" not in bundle.text
    assert len(ctx.diagnostics_of(DUPLICATE_DEFINITION)) == 2


def test_runtime_define_guard_is_opt_in(ctx: BuildContext) -> None:
    ordered = [CoreFile(name="__CORE_Ext_js", kind="file", content="var Ext = {};", priority=1)]

    plain = BundleAssembler().assemble(ctx, ordered)
    guarded = BundleAssembler(define_guard=True).assemble(ctx, ordered)

    assert "__extbundlerGuardDefine" not in plain.text
    assert "Duplicate class definition prevented" in guarded.text
    assert "    __extbundlerGuardDefine();" in guarded.text


def test_empty_input_yields_minimal_bundle(ctx: BuildContext) -> None:
    bundle = BundleAssembler().assemble(ctx, [], entry="App.Main")

    assert "Entry: App.Main" in bundle.text
    assert bundle.file_count == 0


def test_framework_text_excludes_application_code(ctx: BuildContext) -> None:
    ordered = [
        _required("Ext.Widget", "Ext.define('Ext.Widget', {});", origin=FRAMEWORK),
        _required("App.Main", "Ext.create('App.Main');"),
    ]

    bundle = BundleAssembler().assemble(ctx, ordered)

    assert bundle.framework_text == ["Ext.define('Ext.Widget', {});"]
    assert bundle.framework_count == 1


def test_verify_bundle_passes_with_all_primitives(ctx: BuildContext) -> None:
    found = verify_bundle(
        ctx,
        [
            "Ext.define = function() {};",
            "Ext.apply(Ext, { create: function() {}, application: function() {}, onReady: function() {} });",
        ],
    )

    assert found == {"define": True, "create": True, "application": True, "onReady": True}
    assert ctx.diagnostics_of(VERIFICATION) == []


def test_verify_bundle_warns_on_missing_optional_primitives(ctx: BuildContext) -> None:
    verify_bundle(ctx, ["var Manager = { define: function() {} };"])

    subjects = [diagnostic.subject for diagnostic in ctx.diagnostics_of(VERIFICATION)]
    assert subjects == ["create", "application", "onReady"]


def test_verify_bundle_fails_without_registration_primitive(ctx: BuildContext) -> None:
    with pytest.raises(BundleVerificationError):
        verify_bundle(ctx, ["Ext.create = function() {};"])
