"""CLI entrypoint for extbundler commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import BUILD_PROFILES, UNRESOLVED_POLICIES, BuildOptions, ConfigError
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_verbosity_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )
    quiet_kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Only print warnings and errors.",
        "default": argparse.SUPPRESS if suppress_default else False,
    }
    parser.add_argument("-q", "--quiet", **quiet_kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extbundler",
        description="Bundle an Ext JS application into a single content-addressed script.",
    )
    _add_verbosity_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Resolve, order and concatenate the application's classes.",
    )
    _add_verbosity_options(build_parser, suppress_default=True)
    build_parser.add_argument(
        "--app-json",
        default="./app.json",
        help="Path to the application's app.json (default: ./app.json).",
    )
    build_parser.add_argument(
        "--workspace-json",
        default="./workspace.json",
        help="Path to workspace.json (default: ./workspace.json).",
    )
    build_parser.add_argument(
        "--build-dir",
        default=None,
        help="Output directory (default: <workspace build dir>/<profile>/<app name>).",
    )
    build_parser.add_argument(
        "--profile",
        choices=BUILD_PROFILES,
        default="production",
        help="Build profile controlling minifier and Sass options.",
    )
    build_parser.add_argument(
        "--ext-path",
        default=None,
        help="Path to the Ext JS SDK (default: workspace framework path or ./ext).",
    )
    build_parser.add_argument(
        "--index",
        default="./index.html",
        help="HTML page to inject the bundle into (default: ./index.html).",
    )
    build_parser.add_argument(
        "--no-minify",
        action="store_true",
        help="Disable both JavaScript and CSS minification.",
    )
    build_parser.add_argument(
        "--no-minify-js",
        action="store_true",
        help="Disable JavaScript minification.",
    )
    build_parser.add_argument(
        "--no-minify-css",
        action="store_true",
        help="Disable CSS minification.",
    )
    build_parser.add_argument(
        "--force-minimal-core",
        action="store_true",
        help="Ignore prebuilt framework bundles and synthesize a minimal bootstrap.",
    )
    build_parser.add_argument(
        "--no-bootstrap-synthesis",
        action="store_true",
        help="Use individual framework core files instead of a synthesized bootstrap.",
    )
    build_parser.add_argument(
        "--debug-framework",
        action="store_true",
        help="Print a report on the framework SDK and exit without building.",
    )
    build_parser.add_argument(
        "--on-unresolved",
        choices=UNRESOLVED_POLICIES,
        default="warn",
        help="Whether an unknown class name warns (default) or fails the build.",
    )
    build_parser.add_argument(
        "--runtime-define-guard",
        action="store_true",
        help="Wrap Ext.define at runtime to ignore duplicate class registrations.",
    )
    build_parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log output to this file.",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> BuildOptions:
    """Translate parsed ``build`` arguments into :class:`BuildOptions`."""
    return BuildOptions(
        root=Path.cwd(),
        app_json_path=args.app_json,
        workspace_json_path=args.workspace_json,
        build_dir=args.build_dir,
        build_profile=args.profile,
        index_path=args.index,
        ext_path=args.ext_path,
        minify_js=not (args.no_minify or args.no_minify_js),
        minify_css=not (args.no_minify or args.no_minify_css),
        force_minimal_core=bool(args.force_minimal_core),
        synthesize_bootstrap=not args.no_bootstrap_synthesis,
        debug_framework=bool(args.debug_framework),
        on_unresolved=args.on_unresolved,
        runtime_define_guard=bool(args.runtime_define_guard),
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for extbundler commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        log_file=getattr(args, "log_file", None),
    )

    orchestrator = Orchestrator()

    if args.command == "build":
        try:
            options = options_from_args(args)
        except ConfigError as exc:
            parser.exit(2, f"{exc}\n")
        if options.debug_framework:
            orchestrator.run_debug_framework(options)
            print("Run without --debug-framework to perform the actual build.")
            return
        try:
            result = orchestrator.run_build(options)
        except RuntimeError as exc:
            parser.exit(
                1,
                f"extbundler build failed: {exc}\n"
                f"{_describe_cause(exc)}"
                "Run with --verbose for more details, or --debug-framework to check the SDK.\n",
            )
        except Exception as exc:  # pragma: no cover
            parser.exit(1, f"extbundler build failed: {exc}\nRun with --verbose for more details.\n")
        print(f"Build {result.build_id} written to {_relativize(result.build_dir)}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _describe_cause(exc: BaseException) -> str:
    cause = exc.__cause__
    if cause is None:
        return ""
    return f"Caused by: {type(cause).__name__}: {cause}\n"


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
