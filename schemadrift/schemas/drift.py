"""Drift report schemas.

A DriftReport is the only thing that survives a comparison: one
DriftEntry per path in the union of the generated and committed sets,
sorted by path, plus the validation/generation counts for the group.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class DriftStatus(StrEnum):
    """Classification of a single output path."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


# Rendering order for changed entries
CHANGED_STATUSES: tuple[DriftStatus, ...] = (
    DriftStatus.ADDED,
    DriftStatus.MODIFIED,
    DriftStatus.REMOVED,
)


class DriftEntry(BaseModel):
    """One output path and how it differs from the committed tree."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Output path relative to the group's output dir")
    status: DriftStatus = Field(description="Drift classification")
    generated_hash: str | None = Field(
        default=None, description="SHA-256 of the generated content (None if absent)"
    )
    committed_hash: str | None = Field(
        default=None, description="SHA-256 of the committed content (None if absent)"
    )
    diff: str | None = Field(
        default=None, description="Unified diff, only populated for modified entries"
    )


class DriftReport(BaseModel):
    """Sorted drift entries for one schema group."""

    model_config = ConfigDict(frozen=True)

    entries: list[DriftEntry] = Field(
        default_factory=list, description="Entries sorted by path"
    )
    schemas_validated: int = Field(default=0, ge=0, description="Schema files validated")
    schemas_generated: int = Field(default=0, ge=0, description="Artifacts generated")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_drift(self) -> bool:
        """True iff any entry is not unchanged."""
        return any(e.status != DriftStatus.UNCHANGED for e in self.entries)

    def changed(self) -> list[DriftEntry]:
        """Entries whose status is not unchanged, in path order."""
        return [e for e in self.entries if e.status != DriftStatus.UNCHANGED]

    def by_status(self) -> dict[DriftStatus, list[DriftEntry]]:
        """Changed entries grouped by status, in rendering order."""
        grouped: dict[DriftStatus, list[DriftEntry]] = {s: [] for s in CHANGED_STATUSES}
        for entry in self.changed():
            grouped[entry.status].append(entry)
        return {s: entries for s, entries in grouped.items() if entries}

    def count(self, status: DriftStatus) -> int:
        return sum(1 for e in self.entries if e.status == status)
