from __future__ import annotations

import argparse
import sys

from ..core import *  # noqa: F401,F403
from .common import print_diagnostics


def command_lint_docs(args: argparse.Namespace) -> int:
    result = load_docs(Path(args.readme).resolve())
    print(
        f"Parsed {len(result.overlays)} documented overlays "
        f"({len(result.deprecated)} deprecated).",
        file=sys.stderr,
    )
    return print_diagnostics(result.diagnostics)


def command_lint_makefile(args: argparse.Namespace) -> int:
    names, diagnostics = load_build_list(
        Path(args.makefile).resolve(),
        single_marker=args.single_marker,
        multi_marker=args.multi_marker,
        extension=args.extension,
    )
    print(f"Parsed {len(names) - 1} build list entries.", file=sys.stderr)
    return print_diagnostics(diagnostics)
