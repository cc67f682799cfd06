from __future__ import annotations

import argparse
import json
import sys

from ..core import *  # noqa: F401,F403


def command_extract(args: argparse.Namespace) -> int:
    paths = [Path(item).resolve() for item in args.dumps]
    families = tuple(args.family or DEFAULT_FAMILIES)
    newest = args.newest_family or DEFAULT_NEWEST_FAMILY

    diagnostics: list[Diagnostic] = []
    entries: list[ExtractedOverlay] = []
    if args.base:
        base, base_diagnostics = extract_base_dumps(paths)
        entries.append(base)
        diagnostics.extend(base_diagnostics)
    else:
        for path in paths:
            overlay, overlay_diagnostics = extract_overlay_dump(path, families, newest)
            entries.append(overlay)
            diagnostics.extend(overlay_diagnostics)

    payload = {
        "tool": {
            "name": "overlay_check",
            "version": TOOL_VERSION,
        },
        "overlays": {
            entry.name: {
                "params": list(entry.params),
                "restricted": entry.restricted,
            }
            for entry in entries
        },
        "diagnostics": [item.as_dict() for item in diagnostics],
    }

    if args.output:
        write_json(Path(args.output).resolve(), payload)
    else:
        print(json.dumps(payload, indent=2, sort_keys=True))

    for item in diagnostics:
        print(item, file=sys.stderr)
    return 0 if not diagnostics else 1
