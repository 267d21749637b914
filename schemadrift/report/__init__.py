"""Report rendering for drift outcomes."""

from schemadrift.report.renderer import (
    DRIFT_MARKER,
    build_outputs,
    render_group,
    render_run,
    status_line,
)

__all__ = [
    "DRIFT_MARKER",
    "build_outputs",
    "render_group",
    "render_run",
    "status_line",
]
