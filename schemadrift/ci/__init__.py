"""CI integration: exporting outputs and step summaries."""

from schemadrift.ci.outputs import (
    export_result,
    format_outputs,
    write_github_outputs,
    write_step_summary,
)

__all__ = [
    "export_result",
    "format_outputs",
    "write_github_outputs",
    "write_step_summary",
]
