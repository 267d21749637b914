"""Markdown report renderer.

Renders group and run outcomes into the ``diff-summary`` text consumed by
CI logs and PR comments. Rendering is a pure function of its input: the
same outcome always produces byte-identical text, so downstream regex
extraction of file names and of the ``Drift detected`` marker is stable.
"""

from __future__ import annotations

import re

from schemadrift.schemas.drift import DriftEntry, DriftReport, DriftStatus
from schemadrift.schemas.outcome import (
    CompilerError,
    FailureKind,
    Outcome,
    OutcomeStatus,
)
from schemadrift.schemas.run import GroupResult, RunOutputs

DRIFT_MARKER = "Drift detected"

_STATUS_LABEL: dict[OutcomeStatus, str] = {
    OutcomeStatus.PASS: "PASS",
    OutcomeStatus.WARN: "WARN",
    OutcomeStatus.FAIL: "FAIL",
    OutcomeStatus.CANCELLED: "CANCELLED",
}

_SECTION_TITLE: dict[DriftStatus, str] = {
    DriftStatus.ADDED: "Added",
    DriftStatus.MODIFIED: "Modified",
    DriftStatus.REMOVED: "Removed",
}

_BACKTICK_RUN_RE = re.compile(r"`+")


def _fence(body: str) -> str:
    """A backtick fence longer than any backtick run inside body."""
    longest = max((len(m) for m in _BACKTICK_RUN_RE.findall(body)), default=0)
    return "`" * max(3, longest + 1)


def _code_block(body: str, lang: str) -> list[str]:
    fence = _fence(body)
    return [f"{fence}{lang}", body.rstrip("\n"), fence]


def _details(summary: str, body: str, lang: str) -> list[str]:
    return [
        "<details>",
        f"<summary>{summary}</summary>",
        "",
        *_code_block(body, lang),
        "",
        "</details>",
    ]


def status_line(name: str, outcome: Outcome) -> str:
    """One-line status, e.g. ``default: FAIL (drift_error)``."""
    label = _STATUS_LABEL[outcome.status]
    if outcome.failure_kind is not None:
        label = f"{label} ({outcome.failure_kind.value})"
    return f"{name}: {label}"


def _render_counts(report: DriftReport) -> str:
    return (
        f"Schemas validated: {report.schemas_validated} | "
        f"Artifacts generated: {report.schemas_generated}"
    )


def _render_drift(report: DriftReport) -> list[str]:
    lines: list[str] = []
    for status, entries in report.by_status().items():
        lines.append(f"#### {_SECTION_TITLE[status]} ({len(entries)})")
        lines.append("")
        lines.extend(f"- `{e.path}`" for e in entries)
        lines.append("")
        if status == DriftStatus.MODIFIED:
            for entry in entries:
                lines.extend(_render_entry_diff(entry))
                lines.append("")
    return lines


def _render_entry_diff(entry: DriftEntry) -> list[str]:
    return _details(f"Diff: {entry.path}", entry.diff or "", "diff")


def _render_error(error: CompilerError) -> list[str]:
    lines = [f"Error kind: {error.kind.value}"]
    if error.location:
        lines.append(f"Location: `{error.location}`")
    lines.append("")
    if error.output.strip():
        lines.extend(_details("Compiler output", error.output, "text"))
        lines.append("")
    return lines


def render_group(name: str, outcome: Outcome) -> str:
    """Render one group's outcome as a Markdown section."""
    lines = [f"### {status_line(name, outcome)}", ""]
    if outcome.detail:
        lines.extend([outcome.detail, ""])

    if outcome.report is not None:
        lines.extend([_render_counts(outcome.report), ""])
        drift_shown = outcome.status == OutcomeStatus.WARN or (
            outcome.failure_kind == FailureKind.DRIFT_ERROR
        )
        if drift_shown:
            lines.extend(_render_drift(outcome.report))

    if outcome.error is not None:
        lines.extend(_render_error(outcome.error))

    return "\n".join(lines).rstrip("\n") + "\n"


def render_run(outcome: Outcome, groups: dict[str, GroupResult]) -> str:
    """Render the aggregated outcome followed by every group section."""
    lines = [f"## Schema drift check: {_STATUS_LABEL[outcome.status]}", ""]
    if outcome.detail:
        lines.extend([outcome.detail, ""])
    body = "\n".join(lines) + "\n"
    sections = [g.summary for g in groups.values()]
    return body + "\n".join(sections).rstrip("\n") + "\n"


def build_outputs(groups: dict[str, GroupResult], summary: str) -> RunOutputs:
    """Aggregate the numeric and boolean CI outputs across groups."""
    validated = 0
    generated = 0
    drift = False
    for result in groups.values():
        report = result.outcome.report
        if report is None:
            continue
        validated += report.schemas_validated
        generated += report.schemas_generated
        drift = drift or report.has_drift
    return RunOutputs(
        schemas_validated=validated,
        schemas_generated=generated,
        drift_detected=drift,
        diff_summary=summary,
    )
