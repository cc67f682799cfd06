from __future__ import annotations

from ._core_base import *  # noqa: F401,F403


def parse_exclusions(lines: list[str], source: str = "exclusions") -> tuple[ExclusionTable, list[Diagnostic]]:
    """Parse the permanent waiver list.

    Records are line-prefixed: ``=name`` opens an overlay section, ``-param``
    waives a missing (undocumented) parameter and ``+param`` waives a
    vestigial (documented but absent) parameter. ``*`` as the parameter
    waives the whole overlay.
    """
    missing: dict[str, set[str]] = {}
    vestigial: dict[str, set[str]] = {}
    diagnostics: list[Diagnostic] = []
    overlay: str | None = None

    for linenum, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        prefix, value = line[0], line[1:].strip()
        if prefix == "=":
            if not is_valid_overlay_name(value):
                diagnostics.append(Diagnostic(source, linenum, f"invalid overlay name '{value}'"))
                overlay = None
                continue
            overlay = value
            continue

        if prefix not in "-+":
            diagnostics.append(Diagnostic(source, linenum, f"unrecognised record '{line}'"))
            continue
        if overlay is None:
            diagnostics.append(Diagnostic(source, linenum, f"waiver '{line}' outside an overlay section"))
            continue
        if value != WHOLE_OVERLAY and not DOC_PARAM_NAME_RE.match(value):
            diagnostics.append(Diagnostic(source, linenum, f"invalid parameter name '{value}'"))
            continue

        table = missing if prefix == "-" else vestigial
        table.setdefault(overlay, set()).add(value)

    exclusions = ExclusionTable(
        missing={name: tuple(sorted(values)) for name, values in sorted(missing.items())},
        vestigial={name: tuple(sorted(values)) for name, values in sorted(vestigial.items())},
    )
    return exclusions, diagnostics


def merge_exclusions(exclusions: ExclusionTable, deprecated: list[str] | tuple[str, ...]) -> ExclusionTable:
    """Return a new table that also waives every deprecated overlay entirely."""
    missing = {name: set(values) for name, values in exclusions.missing.items()}
    vestigial = {name: set(values) for name, values in exclusions.vestigial.items()}
    for name in deprecated:
        missing.setdefault(name, set()).add(WHOLE_OVERLAY)
        vestigial.setdefault(name, set()).add(WHOLE_OVERLAY)
    return ExclusionTable(
        missing={name: tuple(sorted(values)) for name, values in sorted(missing.items())},
        vestigial={name: tuple(sorted(values)) for name, values in sorted(vestigial.items())},
    )


def load_exclusions(path: Path | None) -> tuple[ExclusionTable, list[Diagnostic]]:
    if path is None:
        return ExclusionTable(), []
    return parse_exclusions(read_text_lines(path, "exclusions file"), source=path.name)
