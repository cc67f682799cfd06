from __future__ import annotations

import shutil
import subprocess
from typing import Iterable

from ._core_base import *  # noqa: F401,F403

ANY_FAMILY = "any"


@dataclass(frozen=True)
class CheckOutcome:
    passed: bool
    diagnostic: str


def render_checker_command(
    command: tuple[str, ...],
    artifact: Path,
    overlay: str,
    params: tuple[str, ...],
    family: str,
) -> list[str]:
    values = {
        "artifact": str(artifact),
        "overlay": overlay,
        "params": ",".join(params),
        "family": family,
    }
    rendered: list[str] = []
    for part in command:
        try:
            rendered.append(part.format(**values))
        except (KeyError, IndexError, ValueError) as exc:
            raise OverlayCheckError(f"Invalid checker command template '{part}': {exc}") from exc
    return rendered


def run_structural_checker(
    command: tuple[str, ...],
    artifact: Path,
    overlay: str,
    params: tuple[str, ...],
    family: str = ANY_FAMILY,
    timeout_seconds: float = 60.0,
) -> CheckOutcome:
    """Run the external checker against one compiled overlay."""
    rendered = render_checker_command(command, artifact, overlay, params, family)
    if shutil.which(rendered[0]) is None:
        return CheckOutcome(passed=False, diagnostic=f"checker executable '{rendered[0]}' not found")
    if not artifact.exists():
        return CheckOutcome(passed=False, diagnostic=f"artifact '{artifact}' does not exist")

    try:
        proc = subprocess.run(rendered, capture_output=True, text=True, timeout=timeout_seconds)
    except subprocess.TimeoutExpired:
        return CheckOutcome(passed=False, diagnostic=f"checker timed out after {timeout_seconds:g}s")
    except OSError as exc:
        return CheckOutcome(passed=False, diagnostic=f"unable to run checker: {exc}")

    output = (proc.stdout.strip() + "\n" + proc.stderr.strip()).strip()
    if proc.returncode != 0:
        return CheckOutcome(passed=False, diagnostic=output or f"exit status {proc.returncode}")
    return CheckOutcome(passed=True, diagnostic=output)


def run_checker_pass(
    checker: CheckerConfig,
    source: dict[str, ExtractedOverlay],
    overlays: Iterable[str] | None = None,
    newest_family: str = DEFAULT_NEWEST_FAMILY,
) -> list[str]:
    """Run the checker for every overlay; return one failure line per overlay.

    Overlays restricted to the newest family get that compatible string as
    ``{family}``, everything else gets ``any``.
    """
    selected = set(overlays) if overlays is not None else None
    failures: list[str] = []
    for name in sorted(source):
        if name == BASE_DTB:
            continue
        if selected is not None and name not in selected:
            continue
        overlay = source[name]
        artifact = checker.artifact_dir / f"{name}{checker.artifact_suffix}"
        outcome = run_structural_checker(
            checker.command,
            artifact,
            name,
            overlay.params,
            newest_family if overlay.restricted else ANY_FAMILY,
            checker.timeout_seconds,
        )
        if not outcome.passed:
            first_line = outcome.diagnostic.splitlines()[0] if outcome.diagnostic else "failed"
            failures.append(f"{name}: {first_line}")
    return failures
