"""Run result schemas returned to the caller."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from schemadrift.schemas.outcome import Outcome


class RunOutputs(BaseModel):
    """Machine-readable outputs, keyed by their CI output names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schemas_validated: int = Field(default=0, ge=0, alias="schemas-validated")
    schemas_generated: int = Field(default=0, ge=0, alias="schemas-generated")
    drift_detected: bool = Field(default=False, alias="drift-detected")
    diff_summary: str = Field(default="", alias="diff-summary")

    def as_dict(self) -> dict[str, int | bool | str]:
        return self.model_dump(by_alias=True)


class GroupResult(BaseModel):
    """Outcome and rendered summary for one schema group."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Group identifier")
    outcome: Outcome = Field(description="Policy outcome for this group")
    summary: str = Field(default="", description="Rendered report for this group")
    files_written: int = Field(default=0, ge=0, description="Artifacts synced to the tree")


class RunResult(BaseModel):
    """Aggregated result of a run."""

    model_config = ConfigDict(frozen=True)

    outcome: Outcome = Field(description="Aggregated outcome across groups")
    groups: dict[str, GroupResult] = Field(
        default_factory=dict, description="Per-group results keyed by group name"
    )
    outputs: RunOutputs = Field(default_factory=RunOutputs)
    exit_code: int = Field(default=0, description="Process exit status for the CI step")
    duration_seconds: float = Field(default=0.0, ge=0.0)
