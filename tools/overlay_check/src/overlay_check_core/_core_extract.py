from __future__ import annotations

from ._core_base import *  # noqa: F401,F403

OVERRIDES_START_RE = re.compile(r"^\s*__overrides__\s*\{\s*$")
OVERRIDE_DECL_RE = re.compile(r"^\s*(?P<name>[^\s=;{}]+)\s*(?:=\s*.*)?;\s*$")
FOOTER_START_RE = re.compile(r"^\s*(?:__symbols__|__fixups__|__local_fixups__)\s*\{")
COMPATIBLE_RE = re.compile(r"^\s*compatible\s*=\s*\"(?P<value>[^\"]*)\"\s*;\s*$")


def overlay_name_from_dump(path: Path) -> str:
    stem = path.stem
    if stem.endswith("-overlay"):
        stem = stem[: -len("-overlay")]
    return stem


def extract_parameters(
    lines: list[str],
    source: str,
    is_overlay: bool,
    accepted_families: tuple[str, ...] = DEFAULT_FAMILIES,
    newest_family: str = DEFAULT_NEWEST_FAMILY,
) -> tuple[bool, tuple[str, ...], list[Diagnostic]]:
    """Collect the override names declared in one decompiled dump.

    Returns ``(restricted, params, diagnostics)``. ``restricted`` is only
    ever true for overlays whose root ``compatible`` is the newest family.
    """
    params: set[str] = set()
    diagnostics: list[Diagnostic] = []
    restricted = False
    compatible_seen = False
    in_overrides = False
    depth = 0

    for linenum, line in enumerate(lines, start=1):
        if FOOTER_START_RE.match(line):
            break

        if in_overrides:
            match = OVERRIDE_DECL_RE.match(line)
            if match:
                name = match.group("name")
                if PARAM_NAME_RE.match(name):
                    params.add(name)
                else:
                    diagnostics.append(Diagnostic(source, linenum, f"invalid parameter name '{name}'"))
                continue
            in_overrides = False

        stripped = line.strip()
        if OVERRIDES_START_RE.match(line):
            in_overrides = True
            depth += 1
            continue

        if is_overlay and depth == 1:
            compat = COMPATIBLE_RE.match(line)
            if compat:
                compatible_seen = True
                value = compat.group("value")
                if value not in accepted_families:
                    diagnostics.append(Diagnostic(source, linenum, f"unexpected compatible string '{value}'"))
                elif value == newest_family:
                    restricted = True

        if stripped.endswith("{"):
            depth += 1
        if stripped.startswith("}"):
            depth -= 1

    if is_overlay and not compatible_seen:
        diagnostics.append(Diagnostic(source, None, "no top-level compatible string"))

    return restricted, tuple(sorted(params)), diagnostics


def extract_overlay_dump(
    path: Path,
    accepted_families: tuple[str, ...] = DEFAULT_FAMILIES,
    newest_family: str = DEFAULT_NEWEST_FAMILY,
) -> tuple[ExtractedOverlay, list[Diagnostic]]:
    lines = read_text_lines(path, "overlay dump")
    restricted, params, diagnostics = extract_parameters(
        lines,
        source=path.name,
        is_overlay=True,
        accepted_families=accepted_families,
        newest_family=newest_family,
    )
    overlay = ExtractedOverlay(
        name=overlay_name_from_dump(path),
        params=params,
        restricted=restricted,
        source=str(path),
    )
    return overlay, diagnostics


def extract_base_dumps(paths: list[Path]) -> tuple[ExtractedOverlay, list[Diagnostic]]:
    """Union the overrides of every base description dump under ``BASE_DTB``."""
    params: set[str] = set()
    diagnostics: list[Diagnostic] = []
    for path in paths:
        _, found, file_diagnostics = extract_parameters(
            read_text_lines(path, "base dump"),
            source=path.name,
            is_overlay=False,
        )
        params.update(found)
        diagnostics.extend(file_diagnostics)
    base = ExtractedOverlay(
        name=BASE_DTB,
        params=tuple(sorted(params)),
        restricted=False,
        source=", ".join(str(path) for path in paths),
    )
    return base, diagnostics


def build_source_catalog(
    overlay_paths: list[Path],
    base_paths: list[Path],
    accepted_families: tuple[str, ...] = DEFAULT_FAMILIES,
    newest_family: str = DEFAULT_NEWEST_FAMILY,
) -> tuple[dict[str, ExtractedOverlay], list[Diagnostic]]:
    catalog: dict[str, ExtractedOverlay] = {}
    diagnostics: list[Diagnostic] = []

    if base_paths:
        base, base_diagnostics = extract_base_dumps(base_paths)
        catalog[BASE_DTB] = base
        diagnostics.extend(base_diagnostics)

    for path in overlay_paths:
        overlay, overlay_diagnostics = extract_overlay_dump(path, accepted_families, newest_family)
        diagnostics.extend(overlay_diagnostics)
        if not ADDON_NAME_RE.match(overlay.name):
            diagnostics.append(Diagnostic(path.name, None, f"invalid overlay name '{overlay.name}'"))
            continue
        if overlay.name in catalog:
            diagnostics.append(Diagnostic(path.name, None, f"duplicate overlay '{overlay.name}'"))
            continue
        catalog[overlay.name] = overlay

    return catalog, diagnostics
