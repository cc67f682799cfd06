from __future__ import annotations

import argparse

from ..core import *  # noqa: F401,F403


def config_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Load the JSON config, or assemble an equivalent one from CLI flags."""
    if getattr(args, "config", None):
        return load_config(Path(args.config).resolve())

    config: dict[str, Any] = {}
    if getattr(args, "readme", None):
        config["readme"] = args.readme
    overlay_dumps = list(getattr(args, "overlay_dumps", None) or [])
    base_dumps = list(getattr(args, "base_dumps", None) or [])
    if overlay_dumps:
        config["overlay_dumps"] = overlay_dumps
    if base_dumps:
        config["base_dumps"] = base_dumps
    if not config.get("readme"):
        raise OverlayCheckError("Either --config or --readme must be given.")
    validate_config_payload(config)
    return config


def resolve_check_config(args: argparse.Namespace) -> CheckConfig:
    repo_root = Path(args.repo_root).resolve()
    config = config_from_args(args)
    return build_check_config(
        config,
        repo_root,
        readme_override=getattr(args, "readme", None),
        makefile_override=getattr(args, "makefile", None),
        exclusions_override=getattr(args, "exclusions", None),
    )


def print_diagnostics(diagnostics: list[Diagnostic]) -> int:
    for item in diagnostics:
        print(item)
    print("OK" if not diagnostics else "Failed")
    return 0 if not diagnostics else 1
