"""schemadrift CLI — Typer + Rich terminal interface.

Commands: check, config. ``check`` is the CI entry point: it runs the
engine, prints the report, exports outputs when running under GitHub
Actions, and exits with the run's exit code.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape

from schemadrift import __version__
from schemadrift.ci.outputs import export_result
from schemadrift.cli_display import (
    render_config,
    render_drift_files,
    render_groups_table,
    render_result_panel,
)
from schemadrift.config import load_run_config
from schemadrift.orchestrator import RunOrchestrator, resolve_groups
from schemadrift.schemas.config import RunConfig
from schemadrift.schemas.outcome import OutcomeStatus
from schemadrift.schemas.run import RunResult

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)

# Exit status for configuration problems (distinct from a failed check)
EXIT_CONFIG_ERROR = 2
EXIT_CANCELLED = 130

app = typer.Typer(
    name="schemadrift",
    help="Detect drift between generated schema artifacts and committed files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"schemadrift {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """schemadrift — schema compiler drift detection for CI."""


# ── Helpers ──────────────────────────────────────────────────────


def _configure_logging(verbose: bool) -> None:
    pkg_logger = logging.getLogger("schemadrift")
    pkg_logger.handlers.clear()
    pkg_logger.addHandler(RichHandler(console=err_console, show_path=False))
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    pkg_logger.propagate = False


def _load_config(config_file: str | None, overrides: dict) -> RunConfig:
    """Load run config, exit on error."""
    try:
        workdir = overrides.get("working_directory")
        return load_run_config(
            Path(config_file) if config_file else None,
            overrides=overrides,
            search_dir=Path(workdir) if workdir else None,
        )
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Error loading config:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG_ERROR) from None


async def _run_until_signalled(orchestrator: RunOrchestrator) -> RunResult:
    """Run the orchestrator, turning SIGINT/SIGTERM into a graceful cancel.

    Cancelled groups are still reported, rendered, and exported.
    """
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.cancel)
        except (NotImplementedError, RuntimeError, ValueError):
            # Not supported on this platform or outside the main thread
            logger.debug("Cannot install handler for %s", sig.name)
            continue
        installed.append(sig)
    try:
        return await orchestrator.run()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def _split_command(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return shlex.split(value)


# ── schemadrift check ────────────────────────────────────────────


@app.command()
def check(
    config_file: str = typer.Option(
        None, "--config", "-c",
        help="Path to schemadrift.toml (default: search the current directory)",
    ),
    working_directory: str = typer.Option(
        None, "--working-directory", "-C",
        help="Base working directory",
    ),
    schema: list[str] = typer.Option(
        None, "--schema", "-s",
        help="Schema glob pattern (repeatable, order matters)",
    ),
    output_dir: str = typer.Option(
        None, "--output-dir", "-o",
        help="Committed output directory, relative to the working directory",
    ),
    generate_command: str = typer.Option(
        None, "--generate-command",
        help="Compiler command for generate mode (shell-quoted)",
    ),
    validate_command: str = typer.Option(
        None, "--validate-command",
        help="Compiler command for validate mode (shell-quoted)",
    ),
    mode: str = typer.Option(
        None, "--mode", "-m",
        help="validate or generate",
    ),
    check_only: bool = typer.Option(
        None, "--check-only/--write",
        help="Only compare; never write generated files",
    ),
    fail_on_drift: bool = typer.Option(
        None, "--fail-on-drift/--no-fail-on-drift",
        help="Fail the step when drift is detected",
    ),
    timeout: float = typer.Option(
        None, "--timeout", "-t",
        help="Compiler timeout in seconds",
    ),
    workers: int = typer.Option(
        None, "--workers", "-w",
        help="Schema groups evaluated concurrently",
    ),
    fmt: str = typer.Option(
        "summary", "--format", "-f",
        help="Output format: summary, markdown, or json",
    ),
    no_export: bool = typer.Option(
        False, "--no-export",
        help="Do not write GITHUB_OUTPUT / GITHUB_STEP_SUMMARY",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Debug logging",
    ),
) -> None:
    """Validate and generate schemas, then check for drift."""
    _configure_logging(verbose)

    if fmt not in ("summary", "markdown", "json"):
        err_console.print(f"[red]Unknown format:[/red] {escape(fmt)}")
        raise typer.Exit(EXIT_CONFIG_ERROR)

    overrides = {
        "working_directory": working_directory,
        "schema_patterns": schema or None,
        "output_dir": output_dir,
        "mode": mode,
        "check_only": check_only,
        "fail_on_drift": fail_on_drift,
        "timeout": timeout,
        "max_workers": workers,
    }
    config = _load_config(config_file, overrides)

    compiler_overrides = {
        "generate_command": _split_command(generate_command),
        "validate_command": _split_command(validate_command),
    }
    compiler_overrides = {k: v for k, v in compiler_overrides.items() if v is not None}
    if compiler_overrides:
        config = config.model_copy(
            update={"compiler": config.compiler.model_copy(update=compiler_overrides)},
        )

    orchestrator = RunOrchestrator(config)
    try:
        if fmt == "summary":
            with console.status("[bold blue]Checking schema drift...", spinner="dots"):
                result = asyncio.run(_run_until_signalled(orchestrator))
        else:
            result = asyncio.run(_run_until_signalled(orchestrator))
    except ValueError as e:
        err_console.print(f"[red]Invalid schema groups:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG_ERROR) from None
    except KeyboardInterrupt:
        err_console.print("[magenta]Cancelled.[/magenta]")
        raise typer.Exit(EXIT_CANCELLED) from None

    if result.outcome.status == OutcomeStatus.CANCELLED:
        err_console.print("[magenta]Cancelled.[/magenta]")

    if fmt == "json":
        typer.echo(result.model_dump_json(indent=2, by_alias=True))
    elif fmt == "markdown":
        typer.echo(result.outputs.diff_summary, nl=False)
    else:
        render_groups_table(console, result)
        render_drift_files(console, result)
        console.print()
        console.print(Markdown(result.outputs.diff_summary))
        console.print()
        render_result_panel(console, result)

    if not no_export:
        export_result(result, os.environ)

    if result.exit_code != 0:
        raise typer.Exit(result.exit_code)


# ── schemadrift config ───────────────────────────────────────────


@app.command("config")
def config_show(
    config_file: str = typer.Option(
        None, "--config", "-c",
        help="Path to schemadrift.toml (default: search the current directory)",
    ),
    working_directory: str = typer.Option(
        None, "--working-directory", "-C",
        help="Base working directory",
    ),
) -> None:
    """Show the resolved configuration and schema groups."""
    config = _load_config(config_file, {"working_directory": working_directory})
    try:
        groups = resolve_groups(config)
    except ValueError as e:
        err_console.print(f"[red]Invalid schema groups:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_CONFIG_ERROR) from None
    render_config(console, config, groups)
