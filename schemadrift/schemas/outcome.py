"""Outcome schemas.

Outcome is the tagged result of evaluating one schema group (or a whole
run): pass, warn, fail, or cancelled. Compiler failures carry a
CompilerError; drift outcomes carry the DriftReport that produced them.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from schemadrift.schemas.drift import DriftReport


class OutcomeStatus(StrEnum):
    """Top-level result of a group or run."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    CANCELLED = "cancelled"


class FailureKind(StrEnum):
    """Why a Fail outcome failed.

    validation_error and generation_error are never downgraded by
    configuration. drift_error only arises when fail_on_drift is set.
    """

    VALIDATION_ERROR = "validation_error"
    GENERATION_ERROR = "generation_error"
    DRIFT_ERROR = "drift_error"


class CompilerErrorKind(StrEnum):
    """Kind of failure reported by the compiler adapter."""

    VALIDATION = "validation"
    GENERATION = "generation"


class CompilerError(BaseModel):
    """Structured error surfaced by the compiler adapter."""

    model_config = ConfigDict(frozen=True)

    kind: CompilerErrorKind = Field(description="Validation or generation failure")
    message: str = Field(description="Human-readable message")
    file: str | None = Field(default=None, description="Offending schema file, if known")
    line: int | None = Field(default=None, ge=1, description="Line number, if known")
    output: str = Field(default="", description="Captured compiler output")

    @property
    def failure_kind(self) -> FailureKind:
        if self.kind == CompilerErrorKind.VALIDATION:
            return FailureKind.VALIDATION_ERROR
        return FailureKind.GENERATION_ERROR

    @property
    def location(self) -> str:
        """``file:line`` (or just ``file``) for display, empty if unknown."""
        if self.file is None:
            return ""
        if self.line is None:
            return self.file
        return f"{self.file}:{self.line}"


class Outcome(BaseModel):
    """Result of applying the failure policy."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus = Field(description="pass, warn, fail, or cancelled")
    failure_kind: FailureKind | None = Field(
        default=None, description="Set only when status is fail"
    )
    detail: str = Field(default="", description="Actionable human-readable detail")
    report: DriftReport | None = Field(
        default=None, description="Drift report backing pass/warn/drift outcomes"
    )
    error: CompilerError | None = Field(
        default=None, description="Compiler error backing validation/generation failures"
    )

    @property
    def is_failure(self) -> bool:
        return self.status == OutcomeStatus.FAIL

    @property
    def has_drift(self) -> bool:
        return self.report is not None and self.report.has_drift
