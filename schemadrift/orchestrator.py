"""Run orchestrator for schema drift checks.

Resolves the run configuration into schema groups and evaluates each
group independently: snapshot committed output -> compiler -> drift
comparison -> failure policy -> report. Groups run concurrently on a
bounded pool; a failure, drift, or crash in one group never changes the
outcome computed for another. Per-group outcomes are aggregated into a
single run outcome and exit code.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
import time
from pathlib import Path, PurePosixPath

from schemadrift import policy
from schemadrift.compiler.adapter import (
    CommandCompiler,
    CompilerFailure,
    RunCancelled,
    SchemaCompiler,
)
from schemadrift.drift.comparator import DriftComparator
from schemadrift.report.renderer import build_outputs, render_group, render_run
from schemadrift.schemas.config import RunConfig, RunMode, SchemaGroup
from schemadrift.schemas.drift import DriftReport
from schemadrift.schemas.outcome import CompilerError, CompilerErrorKind, Outcome
from schemadrift.schemas.run import GroupResult, RunResult
from schemadrift.workspace import resolve_patterns, sync_tree

logger = logging.getLogger(__name__)


def resolve_groups(config: RunConfig) -> list[SchemaGroup]:
    """Resolve configured groups into immutable SchemaGroups.

    Output subtrees of different groups must not overlap; overlap is
    logged as a misconfiguration and left to the caller to fix.

    Raises:
        ValueError: If a group's schema files live inside its own output
            subtree (syncing generated output would delete them).
    """
    base = Path(config.working_directory).resolve()
    groups: list[SchemaGroup] = []
    for gc in config.group_configs():
        workdir = (base / gc.working_directory).resolve()
        schema_paths = tuple(resolve_patterns(workdir, gc.schema_patterns))
        inside = [p for p in schema_paths if PurePosixPath(p).is_relative_to(gc.output_dir)]
        if inside:
            raise ValueError(
                f"Group '{gc.name}': schema files inside output_dir "
                f"'{gc.output_dir}': {', '.join(inside)}"
            )
        groups.append(SchemaGroup(
            name=gc.name,
            working_directory=str(workdir),
            output_dir=gc.output_dir,
            schema_paths=schema_paths,
            fail_on_drift=gc.fail_on_drift,
        ))

    _warn_on_overlap(groups)
    return groups


def _warn_on_overlap(groups: list[SchemaGroup]) -> None:
    roots = [(g.name, PurePosixPath(g.output_root.as_posix())) for g in groups]
    for i, (name_a, root_a) in enumerate(roots):
        for name_b, root_b in roots[i + 1:]:
            if root_a == root_b or root_a in root_b.parents or root_b in root_a.parents:
                logger.warning(
                    "Groups %s and %s have overlapping output directories; "
                    "results for both are undefined",
                    name_a, name_b,
                )


class RunOrchestrator:
    """Evaluates every schema group of a run and aggregates the result.

    Args:
        config: Validated run configuration.
        compiler: Compiler to invoke. Defaults to a CommandCompiler built
            from ``config.compiler`` that honours :meth:`cancel`.
    """

    def __init__(
        self,
        config: RunConfig,
        compiler: SchemaCompiler | None = None,
    ) -> None:
        self._config = config
        self._cancel_event = asyncio.Event()
        self._compiler = compiler or CommandCompiler(
            config.compiler, config.timeout, cancel_event=self._cancel_event,
        )

    @property
    def config(self) -> RunConfig:
        return self._config

    def cancel(self) -> None:
        """Stop the run at the next process-invocation boundary."""
        logger.info("Cancellation requested")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def run(self) -> RunResult:
        """Evaluate all groups and return the aggregated RunResult.

        Raises:
            ValueError: If the groups cannot be resolved (see resolve_groups).
        """
        start = time.monotonic()
        groups = resolve_groups(self._config)
        semaphore = asyncio.Semaphore(self._config.max_workers)

        async def bounded(group: SchemaGroup) -> GroupResult:
            async with semaphore:
                return await self.run_group(group)

        results = await asyncio.gather(*(bounded(g) for g in groups))
        by_name = {r.name: r for r in results}

        outcome = policy.aggregate(r.outcome for r in results)
        summary = render_run(outcome, by_name)
        duration = time.monotonic() - start

        logger.info(
            "Run finished: %s (%d groups, %.1fs)",
            outcome.status.value, len(groups), duration,
        )
        return RunResult(
            outcome=outcome,
            groups=by_name,
            outputs=build_outputs(by_name, summary),
            exit_code=policy.exit_code(outcome),
            duration_seconds=duration,
        )

    async def run_group(self, group: SchemaGroup) -> GroupResult:
        """Evaluate one group. Never raises for group-level failures."""
        written = 0
        try:
            outcome, written = await self._evaluate(group)
        except RunCancelled:
            outcome = policy.cancelled(f"Group {group.name} cancelled")
        except Exception as e:
            # Isolation: an unexpected crash is this group's generation error
            logger.exception("Group %s crashed", group.name)
            error = CompilerError(
                kind=CompilerErrorKind.GENERATION,
                message=f"{type(e).__name__}: {e}",
            )
            outcome = policy.evaluate(error, self._config, group)

        logger.info("Group %s: %s", group.name, outcome.status.value)
        return GroupResult(
            name=group.name,
            outcome=outcome,
            summary=render_group(group.name, outcome),
            files_written=written,
        )

    async def _evaluate(self, group: SchemaGroup) -> tuple[Outcome, int]:
        if self.cancelled:
            raise RunCancelled()

        if self._config.mode == RunMode.VALIDATE:
            try:
                compiled = await self._compiler.invoke(group, RunMode.VALIDATE, None)
            except CompilerFailure as e:
                return policy.evaluate(e.error, self._config, group), 0
            report = DriftReport(schemas_validated=compiled.validated)
            return policy.evaluate(report, self._config, group), 0

        comparator = DriftComparator(group.output_root)
        # Baseline first: generation must never be able to clobber it
        committed = comparator.snapshot()

        with tempfile.TemporaryDirectory(prefix="schemadrift_") as tmp:
            try:
                compiled = await self._compiler.invoke(group, RunMode.GENERATE, Path(tmp))
            except CompilerFailure as e:
                return policy.evaluate(e.error, self._config, group), 0
        generated = compiled.artifacts

        report = comparator.compare(generated, committed, schemas_validated=compiled.validated)
        outcome = policy.evaluate(report, self._config, group)

        written = 0
        if not self._config.check_only and report.has_drift:
            written = sync_tree(group.output_root, generated, report)
            logger.info("Synced %d artifact(s) for group %s", written, group.name)
        return outcome, written


def run(config: RunConfig, compiler: SchemaCompiler | None = None) -> RunResult:
    """Synchronous entry point: evaluate a run to completion."""
    return asyncio.run(RunOrchestrator(config, compiler).run())
