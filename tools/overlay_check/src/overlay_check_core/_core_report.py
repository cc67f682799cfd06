from __future__ import annotations

import sys
from typing import TextIO

from ._core_base import *  # noqa: F401,F403
from ._core_compare import (
    LABEL_CHECKER_FAILURES,
    LABEL_MISSING_FROM_BUILD,
    LABEL_UNDOCUMENTED_OVERLAYS,
    LABEL_VESTIGIAL_IN_BUILD,
    undocumented_params_label,
)

SARIF_RULES = (
    ("OVL001", "OverlayLayoutError", "Malformed README, build list, dump or exclusions file"),
    ("OVL002", "UndocumentedOverlayItem", "Overlay or parameter missing from the README"),
    ("OVL003", "VestigialDocumentation", "README documents an overlay or parameter the source lacks"),
    ("OVL004", "BuildListMismatch", "Makefile overlay list disagrees with the source"),
    ("OVL005", "CheckerFailure", "External checker rejected a compiled overlay"),
)
LAYOUT_RULE_ID = "OVL001"


def build_report(
    diagnostics: list[Diagnostic],
    findings: list[Finding],
    restricted_overlays: list[str] | None = None,
    overlay_count: int = 0,
    documented_count: int = 0,
) -> dict[str, Any]:
    status = "pass" if not diagnostics and not findings else "fail"
    report = {
        "tool": {
            "name": "overlay_check",
            "version": TOOL_VERSION,
        },
        "generated_at_utc": utc_timestamp_now(),
        "status": status,
        "overlay_count": overlay_count,
        "documented_count": documented_count,
        "restricted_overlays": sorted(restricted_overlays or []),
        "diagnostics": [item.as_dict() for item in diagnostics],
        "findings": [item.as_dict() for item in findings],
    }
    validate_with_jsonschema("report", report)
    return report


def format_diagnostic(item: dict[str, Any]) -> str:
    line = item.get("line")
    if line is None:
        return f"{item.get('source')}: {item.get('message')}"
    return f"{item.get('source')}:{line}: {item.get('message')}"


def print_report(report: dict[str, Any], stream: TextIO | None = None) -> None:
    out = stream if stream is not None else sys.stdout
    for item in report.get("diagnostics", []):
        print(format_diagnostic(item), file=out)
    for finding in report.get("findings", []):
        print(f"{finding.get('label')}:", file=out)
        for entry in finding.get("items", []):
            print(f"  {entry}", file=out)
    print("OK" if report.get("status") == "pass" else "Failed", file=out)


def write_markdown_report(path: Path, report: dict[str, Any]) -> None:
    lines: list[str] = []
    lines.append(f"# Overlay Check Report ({report.get('status', 'unknown')})")
    lines.append("")
    lines.append(f"- Overlays in source: `{report.get('overlay_count', 0)}`")
    lines.append(f"- Documented overlays: `{report.get('documented_count', 0)}`")
    lines.append(f"- Structural problems: `{len(report.get('diagnostics', []))}`")
    lines.append(f"- Findings: `{len(report.get('findings', []))}`")
    lines.append("")

    diagnostics = report.get("diagnostics", [])
    if diagnostics:
        lines.append("## Structural Problems")
        for item in diagnostics:
            lines.append(f"- `{format_diagnostic(item)}`")
        lines.append("")

    for finding in report.get("findings", []):
        lines.append(f"## {finding.get('label')}")
        for entry in finding.get("items", []):
            lines.append(f"- `{entry}`")
        lines.append("")

    restricted = report.get("restricted_overlays", [])
    if restricted:
        lines.append("## Restricted To Newest Family")
        for name in restricted:
            lines.append(f"- `{name}`")
        lines.append("")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def sarif_rule_for_finding(label: str) -> str:
    if label in (LABEL_MISSING_FROM_BUILD, LABEL_VESTIGIAL_IN_BUILD):
        return "OVL004"
    if label == LABEL_CHECKER_FAILURES:
        return "OVL005"
    if label == LABEL_UNDOCUMENTED_OVERLAYS or label.endswith(undocumented_params_label("")):
        return "OVL002"
    return "OVL003"


def build_sarif_results(report: dict[str, Any]) -> list[dict[str, Any]]:
    results: list[dict[str, Any]] = []
    for item in report.get("diagnostics", []):
        result: dict[str, Any] = {
            "ruleId": LAYOUT_RULE_ID,
            "level": "error",
            "message": {
                "text": str(item.get("message")),
            },
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {
                            "uri": str(item.get("source")),
                        },
                        "region": {
                            "startLine": item.get("line") or 1,
                        },
                    }
                }
            ],
        }
        results.append(result)

    for finding in report.get("findings", []):
        label = str(finding.get("label"))
        for entry in finding.get("items", []):
            results.append(
                {
                    "ruleId": sarif_rule_for_finding(label),
                    "level": "error",
                    "message": {
                        "text": f"{label}: {entry}",
                    },
                }
            )
    return results


def write_sarif_report(path: Path, results: list[dict[str, Any]]) -> None:
    rules = [
        {
            "id": rule_id,
            "name": name,
            "shortDescription": {"text": description},
            "defaultConfiguration": {"level": "error"},
        }
        for rule_id, name, description in SARIF_RULES
    ]
    payload = {
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "overlay_check",
                        "version": TOOL_VERSION,
                        "rules": rules,
                    }
                },
                "results": results,
            }
        ],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
