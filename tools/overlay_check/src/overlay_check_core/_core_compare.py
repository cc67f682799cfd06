from __future__ import annotations

from typing import Iterable

from ._core_base import *  # noqa: F401,F403

LABEL_UNDOCUMENTED_OVERLAYS = "Overlays without documentation"
LABEL_VESTIGIAL_OVERLAYS = "Vestigial overlay documentation"
LABEL_MISSING_FROM_BUILD = "Overlays missing from the Makefile"
LABEL_VESTIGIAL_IN_BUILD = "Vestigial overlays in the Makefile"
LABEL_CHECKER_FAILURES = "Overlay checker failures"

PLACEHOLDER_TOKEN_RE = re.compile(r"<(?P<digit>[i-z])>(?:-<[i-z]>)?|<(?P<letter>[a-h])>(?:-<[a-h]>)?")
HEX_DIGITS_PATTERN = "[0-9a-f]+"
LOWER_LETTER_PATTERN = "[a-z]"


def _require_sorted(values: list[str], label: str) -> None:
    for previous, current in zip(values, values[1:]):
        if current < previous:
            raise OverlayCheckError(f"diff {label} input is not sorted: '{current}' follows '{previous}'")


def diff(left: Iterable[str], right: Iterable[str]) -> Diff:
    """Merge two sorted sequences into (left only, both, right only)."""
    left_items = list(left)
    right_items = list(right)
    _require_sorted(left_items, "left")
    _require_sorted(right_items, "right")

    left_only: list[str] = []
    both: list[str] = []
    right_only: list[str] = []
    i = j = 0
    while i < len(left_items) and j < len(right_items):
        if left_items[i] < right_items[j]:
            left_only.append(left_items[i])
            i += 1
        elif left_items[i] > right_items[j]:
            right_only.append(right_items[j])
            j += 1
        else:
            both.append(left_items[i])
            i += 1
            j += 1
    left_only.extend(left_items[i:])
    right_only.extend(right_items[j:])
    return Diff(left_only=tuple(left_only), both=tuple(both), right_only=tuple(right_only))


def apply_exclusions(items: Iterable[str], waived: Iterable[str]) -> tuple[str, ...]:
    waived_items = sorted(set(waived))
    if WHOLE_OVERLAY in waived_items:
        return tuple()
    return diff(items, waived_items).left_only


def compile_placeholder(name: str) -> re.Pattern[str] | None:
    """Turn a documented wildcard parameter into a matcher.

    ``<i>``..``<z>`` stand for one or more hex digits, ``<a>``..``<h>`` for
    a single lowercase letter. Concrete names return ``None``.
    """
    parts: list[str] = []
    position = 0
    for match in PLACEHOLDER_TOKEN_RE.finditer(name):
        parts.append(re.escape(name[position : match.start()]))
        parts.append(HEX_DIGITS_PATTERN if match.group("digit") else LOWER_LETTER_PATTERN)
        position = match.end()
    if not parts:
        return None
    parts.append(re.escape(name[position:]))
    return re.compile("".join(parts))


def absorb_wildcards(
    source_only: Iterable[str],
    doc_only: Iterable[str],
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    remaining = tuple(source_only)
    kept_docs: list[str] = []
    for doc_name in doc_only:
        pattern = compile_placeholder(doc_name)
        if pattern is None:
            kept_docs.append(doc_name)
            continue
        unmatched = tuple(name for name in remaining if not pattern.fullmatch(name))
        if len(unmatched) == len(remaining):
            kept_docs.append(doc_name)
            continue
        remaining = unmatched
    return remaining, tuple(kept_docs)


def undocumented_params_label(overlay: str) -> str:
    return f"{overlay} undocumented parameters"


def vestigial_params_label(overlay: str) -> str:
    return f"{overlay} vestigial parameters"


def _missing_overlay_waivers(exclusions: ExclusionTable) -> list[str]:
    return sorted(name for name in exclusions.missing if exclusions.waives_missing_overlay(name))


def _vestigial_overlay_waivers(exclusions: ExclusionTable) -> list[str]:
    return sorted(name for name in exclusions.vestigial if exclusions.waives_vestigial_overlay(name))


def reconcile(
    source: dict[str, tuple[str, ...]],
    docs: dict[str, tuple[str, ...]],
    exclusions: ExclusionTable,
    build_list: list[str] | None = None,
    overlays: Iterable[str] | None = None,
) -> list[Finding]:
    """Compare source, documentation and build list; return every finding.

    ``overlays`` restricts the per-overlay parameter comparison. The
    overlay-level and build-list comparisons always cover everything.
    """
    findings: list[Finding] = []

    overlay_diff = diff(sorted(source), sorted(docs))
    undocumented = apply_exclusions(overlay_diff.left_only, _missing_overlay_waivers(exclusions))
    vestigial = apply_exclusions(overlay_diff.right_only, _vestigial_overlay_waivers(exclusions))
    if undocumented:
        findings.append(Finding(LABEL_UNDOCUMENTED_OVERLAYS, undocumented))
    if vestigial:
        findings.append(Finding(LABEL_VESTIGIAL_OVERLAYS, vestigial))

    selected = set(overlays) if overlays is not None else None
    for name in sorted(overlay_diff.both, key=overlay_sort_key):
        if selected is not None and name not in selected:
            continue
        param_diff = diff(sorted(source[name]), sorted(docs[name]))
        source_only, doc_only = absorb_wildcards(param_diff.left_only, param_diff.right_only)
        missing_params = apply_exclusions(source_only, exclusions.missing.get(name, ()))
        vestigial_params = apply_exclusions(doc_only, exclusions.vestigial.get(name, ()))
        if missing_params:
            findings.append(Finding(undocumented_params_label(name), missing_params))
        if vestigial_params:
            findings.append(Finding(vestigial_params_label(name), vestigial_params))

    if build_list is not None:
        build_diff = diff(sorted(source), sorted(build_list))
        if build_diff.left_only:
            findings.append(Finding(LABEL_MISSING_FROM_BUILD, build_diff.left_only))
        if build_diff.right_only:
            findings.append(Finding(LABEL_VESTIGIAL_IN_BUILD, build_diff.right_only))

    return findings
