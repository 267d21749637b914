"""Run configuration and schema group schemas.

RunConfig is the typed, validated form of everything a caller may set
for one run. It is resolved once at the orchestrator boundary into an
ordered list of immutable SchemaGroups.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_GROUP = "default"


class RunMode(StrEnum):
    """What the compiler is asked to do."""

    VALIDATE = "validate"
    GENERATE = "generate"


def _check_relative(value: str, what: str) -> str:
    path = PurePosixPath(value.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts:
        raise ValueError(f"{what} must stay inside the working directory: {value!r}")
    if not path.parts:
        raise ValueError(f"{what} must name a subdirectory, not the working directory itself")
    return path.as_posix()


def _check_patterns(patterns: list[str]) -> list[str]:
    for pattern in patterns:
        path = PurePosixPath(pattern.replace("\\", "/"))
        if not path.parts:
            raise ValueError(f"Schema pattern must not be empty: {pattern!r}")
        if path.is_absolute():
            raise ValueError(f"Schema pattern must be relative: {pattern!r}")
    return patterns


class CompilerConfig(BaseModel):
    """External compiler command templates.

    Each command is an argv list. ``{schemas}`` as a whole argument expands
    to every schema path of the group; ``{output}`` and ``{workdir}`` are
    substituted anywhere inside an argument.
    """

    model_config = ConfigDict(frozen=True)

    validate_command: list[str] = Field(
        default_factory=list,
        description="argv used in validate mode",
    )
    generate_command: list[str] = Field(
        default_factory=list,
        description="argv used in generate mode (must write into {output})",
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment variables for the compiler process",
    )
    error_pattern: str = Field(
        default=r"^(?P<file>[^\s:]+):(?P<line>\d+)(?::\d+)?:?\s*(?P<message>.*)$",
        description="Regex recognising schema diagnostics (groups: file, line, message)",
    )


class GroupConfig(BaseModel):
    """One schema group as written in the configuration file."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Group identifier")
    working_directory: str = Field(default=".", description="Directory the group runs in")
    schema_patterns: list[str] = Field(
        min_length=1, description="Ordered glob patterns for schema files"
    )
    output_dir: str = Field(
        default="generated", description="Committed output subtree, relative to working dir"
    )
    fail_on_drift: bool | None = Field(
        default=None, description="Per-group override of the run-level fail_on_drift"
    )

    @field_validator("output_dir")
    @classmethod
    def _relative_output(cls, v: str) -> str:
        return _check_relative(v, "output_dir")

    @field_validator("schema_patterns")
    @classmethod
    def _relative_patterns(cls, v: list[str]) -> list[str]:
        return _check_patterns(v)


class RunConfig(BaseModel):
    """Configuration for one drift-check run."""

    model_config = ConfigDict(frozen=True)

    check_only: bool = Field(
        default=False, description="Validate and compare only; never write generated files"
    )
    fail_on_drift: bool = Field(
        default=False, description="Escalate drift from warn to fail"
    )
    working_directory: str = Field(default=".", description="Base working directory")
    schema_patterns: list[str] = Field(
        default_factory=list, description="Ordered glob patterns for the implicit group"
    )
    output_dir: str = Field(
        default="generated", description="Committed output subtree for the implicit group"
    )
    mode: RunMode = Field(default=RunMode.GENERATE, description="Validate or generate")
    groups: list[GroupConfig] = Field(
        default_factory=list, description="Explicit groups; empty means one implicit group"
    )
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    timeout: float = Field(default=300.0, gt=0, description="Compiler timeout in seconds")
    max_workers: int = Field(default=4, ge=1, description="Groups evaluated concurrently")

    @field_validator("output_dir")
    @classmethod
    def _relative_output(cls, v: str) -> str:
        return _check_relative(v, "output_dir")

    @field_validator("schema_patterns")
    @classmethod
    def _relative_patterns(cls, v: list[str]) -> list[str]:
        return _check_patterns(v)

    @model_validator(mode="after")
    def _check_groups(self) -> RunConfig:
        if not self.groups and not self.schema_patterns:
            raise ValueError("No schema patterns configured")
        names = [g.name for g in self.groups]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate group names: {', '.join(duplicates)}")
        return self

    def group_configs(self) -> list[GroupConfig]:
        """Explicit groups, or the implicit default group."""
        if self.groups:
            return list(self.groups)
        return [
            GroupConfig(
                name=DEFAULT_GROUP,
                working_directory=".",
                schema_patterns=self.schema_patterns,
                output_dir=self.output_dir,
            )
        ]


class SchemaGroup(BaseModel):
    """A resolved unit of generation."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Group identifier")
    working_directory: str = Field(description="Absolute working directory")
    output_dir: str = Field(description="Output subtree relative to working_directory")
    schema_paths: tuple[str, ...] = Field(
        default=(), description="Ordered, de-duplicated schema paths (relative)"
    )
    fail_on_drift: bool | None = Field(default=None)

    @property
    def root(self) -> Path:
        return Path(self.working_directory)

    @property
    def output_root(self) -> Path:
        return self.root / self.output_dir
