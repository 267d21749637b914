"""Rich display components for the schemadrift CLI."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from schemadrift.schemas.config import RunConfig, SchemaGroup
from schemadrift.schemas.drift import DriftStatus
from schemadrift.schemas.outcome import OutcomeStatus
from schemadrift.schemas.run import RunResult

STATUS_STYLE: dict[OutcomeStatus, str] = {
    OutcomeStatus.PASS: "bold green",
    OutcomeStatus.WARN: "bold yellow",
    OutcomeStatus.FAIL: "bold red",
    OutcomeStatus.CANCELLED: "bold magenta",
}

_DRIFT_STYLE: dict[DriftStatus, str] = {
    DriftStatus.ADDED: "green",
    DriftStatus.MODIFIED: "yellow",
    DriftStatus.REMOVED: "red",
}


def render_groups_table(console: Console, result: RunResult) -> None:
    """Per-group outcome table."""
    table = Table(title="Schema Groups", show_lines=True)
    table.add_column("Group", style="cyan")
    table.add_column("Status")
    table.add_column("Validated", justify="right")
    table.add_column("Generated", justify="right")
    table.add_column("Changed", justify="right")
    table.add_column("Detail")

    for name, group in result.groups.items():
        outcome = group.outcome
        label = outcome.status.value.upper()
        if outcome.failure_kind is not None:
            label = f"{label} ({outcome.failure_kind.value})"
        report = outcome.report
        table.add_row(
            name,
            Text(label, style=STATUS_STYLE[outcome.status]),
            str(report.schemas_validated) if report else "-",
            str(report.schemas_generated) if report else "-",
            str(len(report.changed())) if report else "-",
            outcome.detail[:80],
        )
    console.print(table)


def render_drift_files(console: Console, result: RunResult) -> None:
    """List every drifted path across groups, colour-coded by status."""
    text = Text()
    for name, group in result.groups.items():
        report = group.outcome.report
        if report is None or not report.has_drift:
            continue
        for entry in report.changed():
            text.append(f"  {entry.status.value:<9}", style=_DRIFT_STYLE[entry.status])
            text.append(f"{name}/{entry.path}\n")
    if text.plain:
        console.print(Panel(text, title="[bold yellow]Drift[/bold yellow]", border_style="yellow"))


def render_result_panel(console: Console, result: RunResult) -> None:
    """Summary metrics panel."""
    outputs = result.outputs
    metrics = Table.grid(padding=(0, 2))
    metrics.add_row(
        "[bold]Outcome:[/bold]",
        Text(result.outcome.status.value.upper(), style=STATUS_STYLE[result.outcome.status]),
        "[bold]Exit code:[/bold]",
        str(result.exit_code),
    )
    metrics.add_row(
        "[bold]Schemas validated:[/bold]",
        str(outputs.schemas_validated),
        "[bold]Artifacts generated:[/bold]",
        str(outputs.schemas_generated),
    )
    metrics.add_row(
        "[bold]Drift detected:[/bold]",
        "yes" if outputs.drift_detected else "no",
        "[bold]Duration:[/bold]",
        f"{result.duration_seconds:.1f}s",
    )
    console.print(Panel(metrics, title="[bold]Schema Drift Check[/bold]"))


def render_config(console: Console, config: RunConfig, groups: list[SchemaGroup]) -> None:
    """Resolved configuration and groups."""
    table = Table(title="Run Configuration", show_header=False, show_lines=True)
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("Working Directory", config.working_directory)
    table.add_row("Mode", config.mode.value)
    table.add_row("Check Only", str(config.check_only))
    table.add_row("Fail On Drift", str(config.fail_on_drift))
    table.add_row("Timeout", f"{config.timeout:g}s")
    table.add_row("Max Workers", str(config.max_workers))
    table.add_row("Validate Command", " ".join(config.compiler.validate_command) or "(none)")
    table.add_row("Generate Command", " ".join(config.compiler.generate_command) or "(none)")
    console.print(table)

    group_table = Table(title="Schema Groups")
    group_table.add_column("Group", style="cyan")
    group_table.add_column("Working Directory")
    group_table.add_column("Output")
    group_table.add_column("Schemas", justify="right")
    group_table.add_column("Fail On Drift")

    for g in groups:
        override = "(run)" if g.fail_on_drift is None else str(g.fail_on_drift)
        group_table.add_row(
            g.name, g.working_directory, g.output_dir, str(len(g.schema_paths)), override,
        )
    console.print()
    console.print(group_table)
