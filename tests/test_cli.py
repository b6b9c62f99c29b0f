"""CLI parser behaviour tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from extbundler import cli
from extbundler.cli import _build_parser, options_from_args
from extbundler.output import OutputWriteError


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "build"])
    assert args.verbose is True
    assert args.command == "build"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["build", "-v"])
    assert args.verbose is True


def test_cli_accepts_quiet_on_either_side() -> None:
    parser = _build_parser()
    assert parser.parse_args(["-q", "build"]).quiet is True
    assert parser.parse_args(["build", "--quiet"]).quiet is True
    assert parser.parse_args(["build"]).quiet is False


def test_build_defaults() -> None:
    args = _build_parser().parse_args(["build"])
    options = options_from_args(args)

    assert options.app_json_path == "./app.json"
    assert options.workspace_json_path == "./workspace.json"
    assert options.build_dir is None
    assert options.build_profile == "production"
    assert options.ext_path is None
    assert options.index_path == "./index.html"
    assert options.minify_js is True
    assert options.minify_css is True
    assert options.force_minimal_core is False
    assert options.synthesize_bootstrap is True
    assert options.on_unresolved == "warn"
    assert options.runtime_define_guard is False


def test_build_flags_map_to_options() -> None:
    args = _build_parser().parse_args(
        [
            "build",
            "--app-json",
            "client/app.json",
            "--build-dir",
            "out",
            "--profile",
            "development",
            "--ext-path",
            "sdk",
            "--no-minify-css",
            "--force-minimal-core",
            "--no-bootstrap-synthesis",
            "--on-unresolved",
            "fail",
            "--runtime-define-guard",
            "--debug-framework",
        ]
    )
    options = options_from_args(args)

    assert options.app_json_path == "client/app.json"
    assert options.build_dir == "out"
    assert options.build_profile == "development"
    assert options.ext_path == "sdk"
    assert options.minify_js is True
    assert options.minify_css is False
    assert options.force_minimal_core is True
    assert options.synthesize_bootstrap is False
    assert options.on_unresolved == "fail"
    assert options.runtime_define_guard is True
    assert options.debug_framework is True


def test_no_minify_disables_both() -> None:
    options = options_from_args(_build_parser().parse_args(["build", "--no-minify"]))

    assert options.minify_js is False
    assert options.minify_css is False


def test_invalid_profile_is_rejected() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["build", "--profile", "staging"])


def test_main_reports_build_failure(monkeypatch, tmp_path: Path, capsys) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["build", "--no-minify"])

    assert excinfo.value.code == 1
    assert "extbundler build failed" in capsys.readouterr().err


def test_main_debug_framework_skips_build(monkeypatch, tmp_path: Path, capsys) -> None:
    monkeypatch.chdir(tmp_path)

    cli.main(["build", "--debug-framework"])

    assert "Run without --debug-framework" in capsys.readouterr().out
    assert not (tmp_path / "build").exists()


def test_main_reports_error_cause(monkeypatch, tmp_path: Path, capsys) -> None:
    monkeypatch.chdir(tmp_path)

    def failing_build(self, options):  # type: ignore[no-untyped-def]
        try:
            raise PermissionError("read-only file system")
        except PermissionError as exc:
            raise OutputWriteError("Could not write build/app.js") from exc

    monkeypatch.setattr(cli.Orchestrator, "run_build", failing_build)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["build"])

    err = capsys.readouterr().err
    assert excinfo.value.code == 1
    assert "extbundler build failed: Could not write build/app.js" in err
    assert "Caused by: PermissionError: read-only file system" in err


def test_main_omits_cause_line_without_cause(monkeypatch, tmp_path: Path, capsys) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit):
        cli.main(["build", "--no-minify"])

    assert "Caused by" not in capsys.readouterr().err
