"""External schema compiler adapter.

Runs the configured compiler command once per group invocation as an
isolated asyncio subprocess. Non-zero exits are classified into
validation errors (a diagnostic that points at one of the group's schema
files) or generation errors (anything else, including timeouts and a
missing executable). There are no retries: each invocation is a single
authoritative attempt.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from schemadrift.schemas.artifacts import ArtifactKind, ArtifactSet
from schemadrift.schemas.config import CompilerConfig, RunMode, SchemaGroup
from schemadrift.schemas.outcome import CompilerError, CompilerErrorKind
from schemadrift.workspace import read_tree

logger = logging.getLogger(__name__)

# Keep failure output short enough for a PR comment
_OUTPUT_EXCERPT_CHARS = 4000


class CompilerFailure(Exception):
    """Raised by a compiler when validation or generation fails."""

    def __init__(self, error: CompilerError) -> None:
        super().__init__(error.message)
        self.error = error


class RunCancelled(Exception):
    """Raised when the caller cancels a run while a compiler is running."""


@dataclass
class CompilerRun:
    """Successful compiler invocation."""

    artifacts: ArtifactSet
    validated: int


class SchemaCompiler(Protocol):
    """Interface consumed by the orchestrator."""

    async def invoke(
        self,
        group: SchemaGroup,
        mode: RunMode,
        output_dir: Path | None,
    ) -> CompilerRun: ...


def _generation_error(message: str, output: str = "") -> CompilerFailure:
    return CompilerFailure(CompilerError(
        kind=CompilerErrorKind.GENERATION,
        message=message,
        output=output[-_OUTPUT_EXCERPT_CHARS:],
    ))


def expand_command(
    template: list[str],
    group: SchemaGroup,
    output_dir: Path | None,
) -> list[str]:
    """Substitute placeholders into an argv template."""
    argv: list[str] = []
    output = str(output_dir) if output_dir is not None else ""
    for arg in template:
        if arg == "{schemas}":
            argv.extend(group.schema_paths)
            continue
        argv.append(
            arg.replace("{output}", output).replace("{workdir}", group.working_directory)
        )
    return argv


def _matches_schema(reported: str, schema_paths: tuple[str, ...]) -> str | None:
    reported = reported.replace("\\", "/").removeprefix("./")
    for path in schema_paths:
        if reported == path or reported.endswith("/" + path) or path.endswith("/" + reported):
            return path
    return None


def classify_failure(
    output: str,
    returncode: int,
    group: SchemaGroup,
    error_pattern: str,
) -> CompilerError:
    """Turn a failed compiler run into a CompilerError.

    The first diagnostic line naming one of the group's schema files makes
    this a validation error; otherwise the toolchain itself failed.
    """
    pattern = re.compile(error_pattern, re.MULTILINE)
    for match in pattern.finditer(output):
        groups = match.groupdict()
        schema = _matches_schema(groups.get("file") or "", group.schema_paths)
        if schema is None:
            continue
        line_str = groups.get("line")
        message = (groups.get("message") or "").strip() or match.group(0).strip()
        return CompilerError(
            kind=CompilerErrorKind.VALIDATION,
            message=message,
            file=schema,
            line=int(line_str) if line_str and line_str.isdigit() and int(line_str) > 0 else None,
            output=output[-_OUTPUT_EXCERPT_CHARS:],
        )

    last_line = next(
        (ln.strip() for ln in reversed(output.splitlines()) if ln.strip()), ""
    )
    message = f"Compiler exited with code {returncode}"
    if last_line:
        message = f"{message}: {last_line}"
    return CompilerError(
        kind=CompilerErrorKind.GENERATION,
        message=message,
        output=output[-_OUTPUT_EXCERPT_CHARS:],
    )


class CommandCompiler:
    """Runs the configured compiler command as a subprocess.

    Each invoke() spawns its own process with its own output directory;
    nothing is shared between invocations. The process is killed on
    timeout or when ``cancel_event`` is set.
    """

    def __init__(
        self,
        config: CompilerConfig,
        timeout: float,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        self._config = config
        self._timeout = timeout
        self._cancel_event = cancel_event

    async def invoke(
        self,
        group: SchemaGroup,
        mode: RunMode,
        output_dir: Path | None,
    ) -> CompilerRun:
        """Validate (and optionally generate) one schema group.

        Raises:
            CompilerFailure: On validation or generation failure.
            RunCancelled: If the cancel event fires while the process runs.
        """
        if not group.schema_paths:
            raise CompilerFailure(CompilerError(
                kind=CompilerErrorKind.VALIDATION,
                message=f"No schema files matched for group '{group.name}'",
            ))

        template = (
            self._config.generate_command
            if mode == RunMode.GENERATE
            else self._config.validate_command
        )
        if not template:
            raise _generation_error(f"No {mode.value} command configured")
        if mode == RunMode.GENERATE and output_dir is None:
            raise _generation_error("Generate mode requires an output directory")

        argv = expand_command(template, group, output_dir)
        returncode, output = await self._execute(argv, group)

        if returncode != 0:
            error = classify_failure(output, returncode, group, self._config.error_pattern)
            logger.warning(
                "Compiler failed for group %s (%s): %s",
                group.name, error.kind.value, error.message,
            )
            raise CompilerFailure(error)

        if mode == RunMode.GENERATE:
            artifacts = read_tree(output_dir, ArtifactKind.GENERATED)
        else:
            artifacts = ArtifactSet(kind=ArtifactKind.GENERATED)

        logger.info(
            "Compiler succeeded for group %s: %d schemas, %d artifacts",
            group.name, len(group.schema_paths), len(artifacts),
        )
        return CompilerRun(artifacts=artifacts, validated=len(group.schema_paths))

    async def _execute(self, argv: list[str], group: SchemaGroup) -> tuple[int, str]:
        """Run argv to completion, honouring timeout and cancellation."""
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise RunCancelled()

        logger.debug("Running compiler in %s: %s", group.working_directory, argv)
        env = {**os.environ, **self._config.env}
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=group.working_directory,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError:
            raise _generation_error(f"Compiler not found: {argv[0]}") from None
        except PermissionError as e:
            raise _generation_error(f"Compiler not executable: {argv[0]} ({e})") from None

        communicate = asyncio.ensure_future(proc.communicate())
        waiters: set[asyncio.Future] = {communicate}
        cancel_wait: asyncio.Future | None = None
        if self._cancel_event is not None:
            cancel_wait = asyncio.ensure_future(self._cancel_event.wait())
            waiters.add(cancel_wait)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=self._timeout, return_when=asyncio.FIRST_COMPLETED,
            )
            if communicate not in done:
                _kill(proc)
                stdout, _ = await communicate
                if cancel_wait is not None and cancel_wait in done:
                    logger.info("Compiler for group %s cancelled", group.name)
                    raise RunCancelled()
                logger.warning(
                    "Compiler for group %s timed out after %ss", group.name, self._timeout
                )
                raise _generation_error(
                    f"Compiler timed out after {self._timeout:g}s",
                    _decode(stdout),
                )
            stdout, _ = communicate.result()
            return proc.returncode, _decode(stdout)
        finally:
            if cancel_wait is not None and not cancel_wait.done():
                cancel_wait.cancel()
            if proc.returncode is None:
                _kill(proc)
                communicate.cancel()


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")
