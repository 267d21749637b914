"""Failure policy engine.

The single authority that turns a drift report or compiler error into a
pass/warn/fail Outcome. Pure functions: no I/O, no hidden state, the same
inputs always produce an equal Outcome.
"""

from __future__ import annotations

from collections.abc import Iterable

from schemadrift.schemas.config import RunConfig, SchemaGroup
from schemadrift.schemas.drift import DriftReport, DriftStatus
from schemadrift.schemas.outcome import (
    CompilerError,
    FailureKind,
    Outcome,
    OutcomeStatus,
)

# Aggregation precedence, highest first
_PRECEDENCE: tuple[OutcomeStatus, ...] = (
    OutcomeStatus.FAIL,
    OutcomeStatus.CANCELLED,
    OutcomeStatus.WARN,
    OutcomeStatus.PASS,
)

_EXIT_CODES: dict[OutcomeStatus, int] = {
    OutcomeStatus.PASS: 0,
    OutcomeStatus.WARN: 0,
    OutcomeStatus.FAIL: 1,
    OutcomeStatus.CANCELLED: 130,
}


def _drift_detail(report: DriftReport) -> str:
    parts = [
        f"{report.count(status)} {status.value}"
        for status in (DriftStatus.ADDED, DriftStatus.MODIFIED, DriftStatus.REMOVED)
        if report.count(status)
    ]
    paths = ", ".join(e.path for e in report.changed())
    return f"Drift detected ({', '.join(parts)}): {paths}"


def _compiler_detail(error: CompilerError) -> str:
    if error.location:
        return f"{error.location}: {error.message}"
    return error.message


def evaluate(
    result: DriftReport | CompilerError,
    config: RunConfig,
    group: SchemaGroup | None = None,
) -> Outcome:
    """Apply the failure policy to a group's result.

    Rules, in order:
    - A compiler error fails unconditionally with its own kind.
    - No drift passes.
    - Drift fails with drift_error when fail_on_drift is set (a group
      override wins over the run setting), otherwise warns.
    """
    if isinstance(result, CompilerError):
        return Outcome(
            status=OutcomeStatus.FAIL,
            failure_kind=result.failure_kind,
            detail=_compiler_detail(result),
            error=result,
        )

    if not result.has_drift:
        return Outcome(
            status=OutcomeStatus.PASS,
            detail="No drift detected",
            report=result,
        )

    fail_on_drift = config.fail_on_drift
    if group is not None and group.fail_on_drift is not None:
        fail_on_drift = group.fail_on_drift

    if fail_on_drift:
        return Outcome(
            status=OutcomeStatus.FAIL,
            failure_kind=FailureKind.DRIFT_ERROR,
            detail=_drift_detail(result),
            report=result,
        )
    return Outcome(
        status=OutcomeStatus.WARN,
        detail=_drift_detail(result),
        report=result,
    )


def cancelled(detail: str = "Run cancelled") -> Outcome:
    """Outcome for a group that was stopped by the caller."""
    return Outcome(status=OutcomeStatus.CANCELLED, detail=detail)


def aggregate(outcomes: Iterable[Outcome]) -> Outcome:
    """Combine per-group outcomes: fail > cancelled > warn > pass.

    The aggregated outcome carries no report; its detail counts the
    groups at the winning status.
    """
    outcomes = list(outcomes)
    if not outcomes:
        return Outcome(status=OutcomeStatus.PASS, detail="No schema groups")

    statuses = [o.status for o in outcomes]
    status = next(s for s in _PRECEDENCE if s in statuses)
    failure_kind = None
    if status == OutcomeStatus.FAIL:
        failure_kind = _worst_failure({o.failure_kind for o in outcomes if o.is_failure})
    return Outcome(
        status=status,
        failure_kind=failure_kind,
        detail=f"{statuses.count(status)} of {len(statuses)} group(s) {status.value}",
    )


def _worst_failure(kinds: set[FailureKind]) -> FailureKind | None:
    for kind in (
        FailureKind.VALIDATION_ERROR,
        FailureKind.GENERATION_ERROR,
        FailureKind.DRIFT_ERROR,
    ):
        if kind in kinds:
            return kind
    return None


def exit_code(outcome: Outcome) -> int:
    """Process exit status: warnings never fail the step."""
    return _EXIT_CODES[outcome.status]
