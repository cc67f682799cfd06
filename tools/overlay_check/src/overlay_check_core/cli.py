from __future__ import annotations

import argparse
import sys

from .core import DEFAULT_BUILD_EXTENSION, DEFAULT_MULTI_MARKER, DEFAULT_SINGLE_MARKER, OverlayCheckError
from .commands import (
    command_check,
    command_extract,
    command_lint_docs,
    command_lint_makefile,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="overlay_check",
        description="Cross-check overlay sources, README documentation and the overlay Makefile.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Reconcile source dumps, README and Makefile.")
    check.add_argument(
        "--repo-root",
        default=".",
        help="Repository root used to resolve relative paths (default: current directory).",
    )
    check.add_argument("--config", help="Path to overlay_check config JSON.")
    check.add_argument("--readme", help="Override README path.")
    check.add_argument("--makefile", help="Override Makefile path.")
    check.add_argument("--exclusions", help="Override exclusions file path.")
    check.add_argument(
        "--overlay-dumps",
        action="append",
        help="Overlay dump directory, file or glob (repeatable; used without --config).",
    )
    check.add_argument(
        "--base-dumps",
        action="append",
        help="Base description dump file or glob (repeatable; used without --config).",
    )
    check.add_argument("--skip-makefile", action="store_true", help="Skip the Makefile comparison.")
    check.add_argument("--run-checker", action="store_true", help="Run the external checker per overlay.")
    check.add_argument(
        "--overlay",
        action="append",
        help="Restrict parameter and checker passes to this overlay (repeatable).",
    )
    check.add_argument("--report", help="Write report JSON to path.")
    check.add_argument("--markdown-report", help="Write report as Markdown.")
    check.add_argument("--sarif-report", help="Write report as SARIF (for CI/code scanning).")
    check.set_defaults(func=command_check)

    lint_docs = sub.add_parser("lint-docs", help="Check README layout only.")
    lint_docs.add_argument("readme", help="Path to the overlay README.")
    lint_docs.set_defaults(func=command_lint_docs)

    lint_makefile = sub.add_parser("lint-makefile", help="Check Makefile overlay list only.")
    lint_makefile.add_argument("makefile", help="Path to the overlay Makefile.")
    lint_makefile.add_argument("--single-marker", default=DEFAULT_SINGLE_MARKER, help="Single-line list marker.")
    lint_makefile.add_argument("--multi-marker", default=DEFAULT_MULTI_MARKER, help="Multi-line list marker.")
    lint_makefile.add_argument("--extension", default=DEFAULT_BUILD_EXTENSION, help="Build target extension.")
    lint_makefile.set_defaults(func=command_lint_makefile)

    extract = sub.add_parser("extract", help="Print parameters declared by decompiled dumps.")
    extract.add_argument("dumps", nargs="+", help="Decompiled dump files.")
    extract.add_argument("--base", action="store_true", help="Treat dumps as base description parts.")
    extract.add_argument("--family", action="append", help="Accepted compatible string (repeatable).")
    extract.add_argument("--newest-family", help="Compatible string of the newest family.")
    extract.add_argument("--output", help="Write JSON to path.")
    extract.set_defaults(func=command_extract)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except OverlayCheckError as exc:
        print(f"overlay_check error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
