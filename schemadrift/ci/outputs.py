"""Export run outputs to a CI provider.

The engine never touches ambient process state; the CLI hands the
returned RunResult to these helpers, which append to the files GitHub
Actions exposes through ``GITHUB_OUTPUT`` and ``GITHUB_STEP_SUMMARY``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from pathlib import Path

from schemadrift.schemas.run import RunOutputs, RunResult

logger = logging.getLogger(__name__)


def format_value(value: int | bool | str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_outputs(outputs: RunOutputs, delimiter: str | None = None) -> str:
    """Render outputs in the ``GITHUB_OUTPUT`` file format.

    Single-line values use ``name=value``; multi-line values use the
    heredoc form with a delimiter that cannot occur in the value.
    """
    lines: list[str] = []
    for name, value in outputs.as_dict().items():
        text = format_value(value)
        if "\n" not in text:
            lines.append(f"{name}={text}")
            continue
        delim = delimiter or f"ghadelimiter_{uuid.uuid4().hex}"
        while delim in text:
            delim = f"ghadelimiter_{uuid.uuid4().hex}"
        lines.append(f"{name}<<{delim}")
        lines.append(text.rstrip("\n"))
        lines.append(delim)
    return "\n".join(lines) + "\n"


def write_github_outputs(outputs: RunOutputs, path: Path) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(format_outputs(outputs))
    logger.debug("Wrote %d outputs to %s", len(outputs.as_dict()), path)


def write_step_summary(summary: str, path: Path) -> None:
    with open(path, "a", encoding="utf-8") as f:
        f.write(summary)
        if not summary.endswith("\n"):
            f.write("\n")


def export_result(result: RunResult, environ: Mapping[str, str]) -> list[str]:
    """Export to whichever CI sinks ``environ`` points at.

    Returns:
        Names of the sinks written (empty outside CI).
    """
    written: list[str] = []
    output_path = environ.get("GITHUB_OUTPUT")
    if output_path:
        write_github_outputs(result.outputs, Path(output_path))
        written.append("GITHUB_OUTPUT")

    summary_path = environ.get("GITHUB_STEP_SUMMARY")
    if summary_path:
        write_step_summary(result.outputs.diff_summary, Path(summary_path))
        written.append("GITHUB_STEP_SUMMARY")
    return written
