from __future__ import annotations

from ._core_base import *  # noqa: F401,F403


def _name_pattern(extension: str) -> str:
    return rf"(?P<name>[A-Za-z0-9][A-Za-z0-9_-]*){re.escape(extension)}"


def parse_build_list(
    lines: list[str],
    source: str = "Makefile",
    single_marker: str = DEFAULT_SINGLE_MARKER,
    multi_marker: str = DEFAULT_MULTI_MARKER,
    extension: str = DEFAULT_BUILD_EXTENSION,
) -> tuple[list[str], list[Diagnostic]]:
    """Collect the overlay names the build file declares, in file order.

    The base description is always the implicit first entry.
    """
    single_re = re.compile(rf"^{re.escape(single_marker)} \+= {_name_pattern(extension)}$")
    multi_re = re.compile(rf"^{re.escape(multi_marker)} \+= \\$")
    continuation_re = re.compile(rf"^\t{_name_pattern(extension)}(?P<more> \\)?$")

    names: list[str] = [BASE_DTB]
    diagnostics: list[Diagnostic] = []
    in_continuation = False
    last_name: str | None = None

    for linenum, line in enumerate(lines, start=1):
        if line != line.rstrip():
            diagnostics.append(Diagnostic(source, linenum, "trailing whitespace"))
            line = line.rstrip()

        name: str | None = None
        if in_continuation:
            match = continuation_re.match(line)
            if not match:
                diagnostics.append(Diagnostic(source, linenum, f"malformed continuation line '{line.strip()}'"))
                in_continuation = False
                continue
            name = match.group("name")
            in_continuation = match.group("more") is not None
        elif multi_re.match(line):
            in_continuation = True
            continue
        else:
            match = single_re.match(line)
            if not match:
                continue
            name = match.group("name")

        if last_name is not None and name <= last_name:
            diagnostics.append(Diagnostic(source, linenum, f"'{name}' is out of order (follows '{last_name}')"))
        last_name = name
        names.append(name)

    if in_continuation:
        diagnostics.append(Diagnostic(source, len(lines), "build list ends inside a continuation"))

    return names, diagnostics


def load_build_list(
    path: Path,
    single_marker: str = DEFAULT_SINGLE_MARKER,
    multi_marker: str = DEFAULT_MULTI_MARKER,
    extension: str = DEFAULT_BUILD_EXTENSION,
) -> tuple[list[str], list[Diagnostic]]:
    return parse_build_list(
        read_text_lines(path, "build file"),
        source=path.name,
        single_marker=single_marker,
        multi_marker=multi_marker,
        extension=extension,
    )
