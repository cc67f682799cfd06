from __future__ import annotations

import sys

from ._core_base import *  # noqa: F401,F403
from ._core_build_list import *  # noqa: F401,F403
from ._core_checker import *  # noqa: F401,F403
from ._core_compare import *  # noqa: F401,F403
from ._core_docs import *  # noqa: F401,F403
from ._core_exclusions import *  # noqa: F401,F403
from ._core_extract import *  # noqa: F401,F403
from ._core_report import *  # noqa: F401,F403


def run_check(
    *,
    check_config: CheckConfig,
    skip_makefile: bool = False,
    run_checker: bool = False,
    overlays: list[str] | None = None,
) -> dict[str, Any]:
    """Parse every input, reconcile them and return the report payload."""
    diagnostics: list[Diagnostic] = []

    exclusions, exclusion_diagnostics = load_exclusions(check_config.exclusions)
    diagnostics.extend(exclusion_diagnostics)

    docs = load_docs(check_config.readme)
    diagnostics.extend(docs.diagnostics)
    exclusions = merge_exclusions(exclusions, docs.deprecated)

    repo_root = check_config.repo_root
    overlay_paths = iter_files_from_entries(repo_root, check_config.overlay_dumps, DEFAULT_DUMP_SUFFIX)
    base_paths = iter_files_from_entries(repo_root, check_config.base_dumps, DEFAULT_DUMP_SUFFIX)
    if not base_paths:
        print("overlay_check: no base description dumps configured", file=sys.stderr)
    source, source_diagnostics = build_source_catalog(
        overlay_paths,
        base_paths,
        accepted_families=check_config.accepted_families,
        newest_family=check_config.newest_family,
    )
    diagnostics.extend(source_diagnostics)

    build_list: list[str] | None = None
    if check_config.makefile is not None and not skip_makefile:
        build_list, build_diagnostics = load_build_list(
            check_config.makefile,
            single_marker=check_config.single_marker,
            multi_marker=check_config.multi_marker,
            extension=check_config.build_extension,
        )
        diagnostics.extend(build_diagnostics)
        if BASE_DTB not in source:
            # the implicit base entry has nothing to match without base dumps
            build_list = [name for name in build_list if name != BASE_DTB]

    if overlays:
        unknown = sorted(set(overlays) - set(source))
        if unknown:
            raise OverlayCheckError(f"Unknown overlay(s): {', '.join(unknown)}")

    findings = reconcile(
        {name: overlay.params for name, overlay in source.items()},
        docs.overlays,
        exclusions,
        build_list=build_list,
        overlays=overlays or None,
    )

    if run_checker:
        if check_config.checker is None:
            raise OverlayCheckError("--run-checker requires a 'checker' section in the config.")
        failures = run_checker_pass(
            check_config.checker,
            source,
            overlays=overlays or None,
            newest_family=check_config.newest_family,
        )
        if failures:
            findings.append(Finding(LABEL_CHECKER_FAILURES, tuple(failures)))

    print(
        f"Checked {len(source)} source entries against {len(docs.overlays)} documented overlays.",
        file=sys.stderr,
    )
    return build_report(
        diagnostics,
        findings,
        restricted_overlays=[name for name, overlay in source.items() if overlay.restricted],
        overlay_count=len(source),
        documented_count=len(docs.overlays),
    )
