"""schemadrift schema definitions.

All Pydantic v2 models shared by the compiler adapter, comparator, policy
engine, renderer, and orchestrator.
"""

from schemadrift.schemas.artifacts import ArtifactKind, ArtifactSet, content_hash
from schemadrift.schemas.config import (
    DEFAULT_GROUP,
    CompilerConfig,
    GroupConfig,
    RunConfig,
    RunMode,
    SchemaGroup,
)
from schemadrift.schemas.drift import DriftEntry, DriftReport, DriftStatus
from schemadrift.schemas.outcome import (
    CompilerError,
    CompilerErrorKind,
    FailureKind,
    Outcome,
    OutcomeStatus,
)
from schemadrift.schemas.run import GroupResult, RunOutputs, RunResult

__all__ = [
    "DEFAULT_GROUP",
    "ArtifactKind",
    "ArtifactSet",
    "CompilerConfig",
    "CompilerError",
    "CompilerErrorKind",
    "DriftEntry",
    "DriftReport",
    "DriftStatus",
    "FailureKind",
    "GroupConfig",
    "GroupResult",
    "Outcome",
    "OutcomeStatus",
    "RunConfig",
    "RunMode",
    "RunOutputs",
    "RunResult",
    "SchemaGroup",
    "content_hash",
]
