"""Artifact set schemas.

An ArtifactSet is the in-memory image of one output subtree: either the
files a compiler just generated, or the files currently committed in the
working tree. Paths are relative POSIX strings; content is raw bytes.
"""

from __future__ import annotations

import hashlib
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArtifactKind(StrEnum):
    """Which side of a drift comparison an ArtifactSet represents."""

    GENERATED = "generated"
    COMMITTED = "committed"


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest of raw file content."""
    return hashlib.sha256(data).hexdigest()


class ArtifactSet(BaseModel):
    """Mapping of relative output path to file content."""

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind = Field(description="Generated or committed side")
    files: dict[str, bytes] = Field(
        default_factory=dict,
        description="Relative POSIX path -> raw file content",
    )

    @field_validator("files")
    @classmethod
    def _check_paths(cls, files: dict[str, bytes]) -> dict[str, bytes]:
        for path in files:
            if not path or path.startswith("/") or "\\" in path:
                raise ValueError(f"Artifact path must be relative POSIX: {path!r}")
        return files

    def digest(self, path: str) -> str | None:
        """Content hash for a path, or None when the set has no such path."""
        data = self.files.get(path)
        if data is None:
            return None
        return content_hash(data)

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: object) -> bool:
        return path in self.files
