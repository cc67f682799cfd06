from __future__ import annotations

import datetime as dt
import glob
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema

TOOL_VERSION = "1.0.0"

BASE_DTB = "<The base DTB>"
WHOLE_OVERLAY = "*"
DOCS_INDENT = 8
MAX_LINE_LENGTH = 80

ADDON_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
PARAM_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_-]*$")
DIGIT_PLACEHOLDER = r"<[i-z]>(?:-<[i-z]>)?"
LETTER_PLACEHOLDER = r"<[a-h]>(?:-<[a-h]>)?"
DOC_PARAM_NAME_RE = re.compile(
    rf"^(?:[A-Za-z0-9_]|{DIGIT_PLACEHOLDER}|{LETTER_PLACEHOLDER})"
    rf"(?:[A-Za-z0-9_-]|{DIGIT_PLACEHOLDER}|{LETTER_PLACEHOLDER})*$"
)

DEFAULT_FAMILIES = ("brcm,bcm2835", "brcm,bcm2711", "brcm,bcm2712")
DEFAULT_NEWEST_FAMILY = "brcm,bcm2712"
DEFAULT_SINGLE_MARKER = "dtbo-$(CONFIG_ARCH_BCM2835)"
DEFAULT_MULTI_MARKER = "dtbo-$(RPI_DT_OVERLAYS)"
DEFAULT_BUILD_EXTENSION = ".dtbo"
DEFAULT_DUMP_SUFFIX = ".dts"


class OverlayCheckError(Exception):
    pass


@dataclass(frozen=True)
class Diagnostic:
    source: str
    line: int | None
    message: str

    def __str__(self) -> str:
        if self.line is None:
            return f"{self.source}: {self.message}"
        return f"{self.source}:{self.line}: {self.message}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "line": self.line,
            "message": self.message,
        }


@dataclass(frozen=True)
class Finding:
    label: str
    items: tuple[str, ...]

    def as_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "items": list(self.items),
        }


@dataclass(frozen=True)
class Diff:
    left_only: tuple[str, ...]
    both: tuple[str, ...]
    right_only: tuple[str, ...]


@dataclass(frozen=True)
class ExclusionTable:
    missing: dict[str, tuple[str, ...]] = field(default_factory=dict)
    vestigial: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def waives_missing_overlay(self, overlay: str) -> bool:
        return WHOLE_OVERLAY in self.missing.get(overlay, ())

    def waives_vestigial_overlay(self, overlay: str) -> bool:
        return WHOLE_OVERLAY in self.vestigial.get(overlay, ())


@dataclass(frozen=True)
class ExtractedOverlay:
    name: str
    params: tuple[str, ...]
    restricted: bool
    source: str


@dataclass(frozen=True)
class CheckerConfig:
    command: tuple[str, ...]
    artifact_dir: Path
    artifact_suffix: str
    timeout_seconds: float


@dataclass(frozen=True)
class CheckConfig:
    repo_root: Path
    readme: Path
    makefile: Path | None
    exclusions: Path | None
    overlay_dumps: tuple[str, ...]
    base_dumps: tuple[str, ...]
    single_marker: str
    multi_marker: str
    build_extension: str
    accepted_families: tuple[str, ...]
    newest_family: str
    checker: CheckerConfig | None


def overlay_sort_key(name: str) -> tuple[int, str]:
    if name == BASE_DTB:
        return (0, "")
    return (1, name)


def is_valid_overlay_name(name: str) -> bool:
    return name == BASE_DTB or bool(ADDON_NAME_RE.match(name))


def read_text_lines(path: Path, label: str) -> list[str]:
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise OverlayCheckError(f"Unable to read {label} '{path}': {exc}") from exc
    except UnicodeDecodeError as exc:
        raise OverlayCheckError(f"{label} '{path}' is not valid UTF-8: {exc}") from exc


def load_json(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise OverlayCheckError(f"Unable to read JSON file '{path}': {exc}") from exc
    except json.JSONDecodeError as exc:
        raise OverlayCheckError(f"Invalid JSON in '{path}': {exc}") from exc


def write_json(path: Path, value: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(value, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def get_schema_path(kind: str) -> Path:
    base = Path(__file__).resolve().parent / "schemas"
    mapping = {
        "config": base / "config.schema.json",
        "report": base / "report.schema.json",
    }
    if kind not in mapping:
        raise OverlayCheckError(f"Unknown schema kind: {kind}")
    return mapping[kind]


def validate_with_jsonschema(kind: str, payload: dict[str, Any]) -> None:
    schema_path = get_schema_path(kind)
    if not schema_path.exists():
        raise OverlayCheckError(f"schema file not found: {schema_path}")
    schema_payload = load_json(schema_path)
    try:
        jsonschema.validate(payload, schema_payload)
    except jsonschema.ValidationError as exc:
        raise OverlayCheckError(f"{kind} failed JSON schema validation: {exc.message}") from exc


def ensure_relative_path(root: Path, value: str) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return root / path


def iter_files_from_entries(root: Path, entries: list[str] | tuple[str, ...], suffix: str) -> list[Path]:
    paths: list[Path] = []
    seen: set[Path] = set()

    for entry in entries:
        expanded: list[Path] = []
        entry_path = ensure_relative_path(root, entry)

        if any(ch in entry for ch in "*?[]"):
            for match in glob.glob(str(entry_path), recursive=True):
                expanded.append(Path(match))
        elif entry_path.is_dir():
            expanded.extend(entry_path.rglob(f"*{suffix}"))
        elif entry_path.is_file():
            expanded.append(entry_path)
        else:
            raise OverlayCheckError(f"Dump path does not exist: {entry_path}")

        for candidate in expanded:
            if not candidate.is_file() or candidate.suffix.lower() != suffix:
                continue
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                paths.append(resolved)

    return sorted(paths)


def normalize_string_list(value: Any, key: str) -> tuple[str, ...]:
    if value is None:
        return tuple()
    if not isinstance(value, list):
        raise OverlayCheckError(f"Config field '{key}' must be an array when specified.")
    out: list[str] = []
    for idx, item in enumerate(value):
        if not isinstance(item, str) or not item:
            raise OverlayCheckError(f"Config field '{key}[{idx}]' must be a non-empty string.")
        out.append(item)
    return tuple(out)


def optional_str(value: Any, key: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise OverlayCheckError(f"Config field '{key}' must be a non-empty string when specified.")
    return value


def require_dict(value: Any, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise OverlayCheckError(f"Config field '{key}' must be an object when specified.")
    return value


def validate_config_payload(payload: dict[str, Any]) -> None:
    if not isinstance(payload, dict):
        raise OverlayCheckError("config root must be an object")
    if optional_str(payload.get("readme"), "readme") is None:
        raise OverlayCheckError("config must define non-empty 'readme' path")

    families = require_dict(payload.get("families"), "families")
    accepted = normalize_string_list(families.get("accepted"), "families.accepted")
    newest = optional_str(families.get("newest"), "families.newest")
    if newest and accepted and newest not in accepted:
        raise OverlayCheckError("families.newest must be one of families.accepted")

    checker = payload.get("checker")
    if checker is not None:
        checker = require_dict(checker, "checker")
        command = normalize_string_list(checker.get("command"), "checker.command")
        if not command:
            raise OverlayCheckError("checker.command must be a non-empty array")
        timeout = checker.get("timeout_seconds")
        if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
            raise OverlayCheckError("checker.timeout_seconds must be a positive number")

    validate_with_jsonschema("config", payload)


def load_config(path: Path) -> dict[str, Any]:
    config = load_json(path)
    validate_config_payload(config)
    return config


def build_check_config(
    config: dict[str, Any],
    repo_root: Path,
    readme_override: str | None = None,
    makefile_override: str | None = None,
    exclusions_override: str | None = None,
) -> CheckConfig:
    readme_value = readme_override or optional_str(config.get("readme"), "readme")
    if not readme_value:
        raise OverlayCheckError("A README path is required (config 'readme' or --readme).")
    makefile_value = makefile_override or optional_str(config.get("makefile"), "makefile")
    exclusions_value = exclusions_override or optional_str(config.get("exclusions"), "exclusions")

    build_cfg = require_dict(config.get("build_list"), "build_list")
    families_cfg = require_dict(config.get("families"), "families")
    accepted = normalize_string_list(families_cfg.get("accepted"), "families.accepted") or DEFAULT_FAMILIES
    newest = optional_str(families_cfg.get("newest"), "families.newest") or DEFAULT_NEWEST_FAMILY

    checker: CheckerConfig | None = None
    checker_cfg = config.get("checker")
    if isinstance(checker_cfg, dict):
        checker = CheckerConfig(
            command=normalize_string_list(checker_cfg.get("command"), "checker.command"),
            artifact_dir=ensure_relative_path(
                repo_root, optional_str(checker_cfg.get("artifact_dir"), "checker.artifact_dir") or "."
            ),
            artifact_suffix=optional_str(checker_cfg.get("artifact_suffix"), "checker.artifact_suffix")
            or DEFAULT_BUILD_EXTENSION,
            timeout_seconds=float(checker_cfg.get("timeout_seconds", 60)),
        )

    return CheckConfig(
        repo_root=repo_root,
        readme=ensure_relative_path(repo_root, readme_value),
        makefile=ensure_relative_path(repo_root, makefile_value) if makefile_value else None,
        exclusions=ensure_relative_path(repo_root, exclusions_value) if exclusions_value else None,
        overlay_dumps=normalize_string_list(config.get("overlay_dumps"), "overlay_dumps"),
        base_dumps=normalize_string_list(config.get("base_dumps"), "base_dumps"),
        single_marker=optional_str(build_cfg.get("single_marker"), "build_list.single_marker")
        or DEFAULT_SINGLE_MARKER,
        multi_marker=optional_str(build_cfg.get("multi_marker"), "build_list.multi_marker")
        or DEFAULT_MULTI_MARKER,
        build_extension=optional_str(build_cfg.get("extension"), "build_list.extension")
        or DEFAULT_BUILD_EXTENSION,
        accepted_families=accepted,
        newest_family=newest,
        checker=checker,
    )


def utc_timestamp_now() -> str:
    return dt.datetime.now(tz=dt.timezone.utc).isoformat()
