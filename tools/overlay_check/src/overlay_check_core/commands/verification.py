from __future__ import annotations

import argparse

from ..core import *  # noqa: F401,F403
from .common import resolve_check_config


def command_check(args: argparse.Namespace) -> int:
    check_config = resolve_check_config(args)
    report = run_check(
        check_config=check_config,
        skip_makefile=bool(args.skip_makefile),
        run_checker=bool(args.run_checker),
        overlays=list(args.overlay or []),
    )

    if args.report:
        write_json(Path(args.report).resolve(), report)
    if args.markdown_report:
        write_markdown_report(Path(args.markdown_report).resolve(), report)
    if args.sarif_report:
        write_sarif_report(Path(args.sarif_report).resolve(), build_sarif_results(report))

    print_report(report)
    return 0 if report.get("status") == "pass" else 1
