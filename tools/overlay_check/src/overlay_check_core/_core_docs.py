from __future__ import annotations

from ._core_base import *  # noqa: F401,F403

KNOWN_LABELS = ("Name", "Info", "Load", "Params")
LABEL_RE = re.compile(r"^(?P<label>[A-Za-z][A-Za-z0-9_]*):(?P<pad> *)(?P<value>.*)$")
LOAD_RE = re.compile(
    r"^dtoverlay=(?P<name>[A-Za-z0-9][A-Za-z0-9_-]*)(?P<params>,<param>(?:=<val>|\[=<val>\])?)?$"
)
PARAM_LINE_RE = re.compile(r"^(?P<indent> *)(?P<token>\S+)(?P<gap> *)(?P<rest>.*)$")
LONE_TOKEN_RE = re.compile(r"^\s+\S+$")
DEPRECATED = "<Deprecated>"
LOADED_AUTOMATICALLY = "<loaded automatically>"
NO_PARAMS = "<None>"


@dataclass(frozen=True)
class DocsParseResult:
    overlays: dict[str, tuple[str, ...]]
    deprecated: tuple[str, ...]
    diagnostics: list[Diagnostic]


@dataclass
class _Entry:
    name: str
    start_line: int
    valid: bool
    label: str = "Name"
    expect_params: bool | None = None
    params_seen: bool = False
    collecting: bool = False
    mismatch_reported: bool = False
    docs_column: int | None = None
    params: list[str] = field(default_factory=list)


class DocsParser:
    """Line-by-line state machine over the overlay README.

    Layout problems are recorded as diagnostics and parsing carries on with
    the next line, so one run reports every problem in the file.
    """

    def __init__(self, source: str = "README") -> None:
        self.source = source
        self.overlays: dict[str, tuple[str, ...]] = {}
        self.deprecated: list[str] = []
        self.diagnostics: list[Diagnostic] = []
        self.entry: _Entry | None = None
        self.last_name: str | None = None
        self.blank_count = 0
        self.linenum = 0

    def error(self, message: str, linenum: int | None = None) -> None:
        self.diagnostics.append(Diagnostic(self.source, linenum if linenum is not None else self.linenum, message))

    def parse(self, lines: list[str]) -> DocsParseResult:
        for linenum, line in enumerate(lines, start=1):
            self.linenum = linenum
            self.feed(line)
        if self.entry is not None:
            self.close_entry()
        return DocsParseResult(
            overlays=dict(sorted(self.overlays.items(), key=lambda item: overlay_sort_key(item[0]))),
            deprecated=tuple(sorted(self.deprecated)),
            diagnostics=list(self.diagnostics),
        )

    def feed(self, line: str) -> None:
        if line != line.rstrip():
            self.error("trailing whitespace")
        if "\t" in line:
            self.error("tab character")
        if len(line) > MAX_LINE_LENGTH and not LONE_TOKEN_RE.match(line):
            self.error(f"line is {len(line)} characters long (limit {MAX_LINE_LENGTH})")

        if not line.strip():
            self.blank_count += 1
            if self.blank_count == 2 and self.entry is not None:
                self.close_entry()
            return
        self.blank_count = 0

        match = LABEL_RE.match(line)
        if match and match.group("label") not in KNOWN_LABELS and not match.group("pad") and match.group("value"):
            # "word:text" is prose, not a label
            match = None
        if match:
            self.handle_label(match.group("label"), match.group("pad"), match.group("value").rstrip())
        elif line[0].isspace():
            self.handle_indented(line.expandtabs(DOCS_INDENT).rstrip())
        elif self.entry is not None:
            self.error("unexpected unindented text inside an overlay entry")

    def handle_label(self, label: str, pad: str, value: str) -> None:
        if label not in KNOWN_LABELS:
            self.error(f"bad label '{label}:'")
            return
        value_column = len(label) + 1 + len(pad)
        if value and value_column != DOCS_INDENT:
            self.error(f"'{label}:' value must start in column {DOCS_INDENT + 1}")

        if label == "Name":
            self.handle_name(value)
            return
        if self.entry is None:
            self.error(f"'{label}:' outside an overlay entry")
            return
        self.entry.label = label
        if label == "Info":
            return
        if label == "Load":
            self.handle_load(value)
        else:
            self.handle_params(value, value_column)

    def handle_name(self, name: str) -> None:
        if self.entry is not None:
            self.error(f"missing blank lines before overlay '{name}'")
            self.close_entry()

        valid = is_valid_overlay_name(name)
        if not valid:
            self.error(f"invalid overlay name '{name}'")
        elif self.last_name is not None and overlay_sort_key(name) <= overlay_sort_key(self.last_name):
            self.error(f"overlay '{name}' is out of order (follows '{self.last_name}')")
        if valid:
            self.last_name = name
        self.entry = _Entry(name=name, start_line=self.linenum, valid=valid)

    def handle_load(self, value: str) -> None:
        entry = self.entry
        if value == DEPRECATED:
            self.deprecated.append(entry.name)
            self.entry = None
            return
        if value == LOADED_AUTOMATICALLY and entry.name == BASE_DTB:
            return

        match = LOAD_RE.match(value)
        if not match:
            self.error(f"malformed Load example '{value}'")
            return
        if match.group("name") != entry.name:
            self.error(f"Load example names '{match.group('name')}', expected '{entry.name}'")
        entry.expect_params = bool(entry.expect_params) or match.group("params") is not None

    def handle_params(self, value: str, value_column: int) -> None:
        entry = self.entry
        if entry.params_seen:
            self.error(f"duplicate 'Params:' for overlay '{entry.name}'")
        entry.params_seen = True

        if not value:
            entry.collecting = True
            return
        if value == NO_PARAMS:
            if entry.expect_params:
                self.error(f"'{entry.name}' has no parameters but its Load example declares some")
            entry.collecting = False
            return

        match = PARAM_LINE_RE.match(value)
        self.add_param(match.group("token"))
        if match.group("rest"):
            entry.docs_column = value_column + len(match.group("token")) + len(match.group("gap"))
        entry.collecting = True

    def handle_indented(self, line: str) -> None:
        entry = self.entry
        if entry is None:
            return
        match = PARAM_LINE_RE.match(line)
        indent = len(match.group("indent"))

        if entry.label != "Params":
            if indent < DOCS_INDENT:
                self.error(f"continuation line indented {indent} columns, expected {DOCS_INDENT}")
            return
        if not entry.collecting:
            return

        if indent < DOCS_INDENT:
            self.error(f"parameter line indented {indent} columns, expected {DOCS_INDENT}")
            return
        if indent == DOCS_INDENT:
            self.handle_param_line(match)
            return
        if entry.docs_column is None:
            entry.docs_column = indent
        elif indent < entry.docs_column:
            self.error(
                f"continuation line indented {indent} columns, expected {DOCS_INDENT} or {entry.docs_column}"
            )

    def handle_param_line(self, match: re.Match[str]) -> None:
        entry = self.entry
        token, gap, rest = match.group("token"), match.group("gap"), match.group("rest")
        column = DOCS_INDENT + len(token) + len(gap)

        prose = len(gap) == 1 and bool(rest) and entry.docs_column is not None and column != entry.docs_column
        if token.endswith(":") or prose:
            # trailing notes below the parameter table end the collection
            entry.collecting = False
            return

        self.add_param(token)
        if not rest:
            return
        if entry.docs_column is None:
            entry.docs_column = column
        elif column != entry.docs_column:
            self.error(
                f"description of '{token}' starts in column {column + 1}, expected {entry.docs_column + 1}"
            )

    def add_param(self, token: str) -> None:
        entry = self.entry
        if entry.expect_params is False and not entry.mismatch_reported:
            self.error(f"'{entry.name}' lists parameters but its Load example declares none")
            entry.mismatch_reported = True
        if not DOC_PARAM_NAME_RE.match(token):
            self.error(f"invalid parameter name '{token}'")
            return
        if token in entry.params:
            self.error(f"duplicate parameter '{token}' for overlay '{entry.name}'")
            return
        entry.params.append(token)

    def close_entry(self) -> None:
        entry = self.entry
        self.entry = None
        if not entry.params_seen:
            self.error(f"overlay '{entry.name}' has no 'Params:' section", entry.start_line)
        if entry.valid:
            self.overlays[entry.name] = tuple(sorted(entry.params))


def parse_docs(lines: list[str], source: str = "README") -> DocsParseResult:
    return DocsParser(source).parse(lines)


def load_docs(path: Path) -> DocsParseResult:
    return parse_docs(read_text_lines(path, "README"), source=path.name)
