"""Filesystem access for schema groups.

Glob resolution, committed-tree snapshots, and syncing generated
artifacts back into the working tree. Every listing is sorted so that
results never depend on directory iteration order.
"""

from __future__ import annotations

import logging
from pathlib import Path

from schemadrift.schemas.artifacts import ArtifactKind, ArtifactSet
from schemadrift.schemas.drift import DriftReport, DriftStatus

logger = logging.getLogger(__name__)


def resolve_patterns(root: Path, patterns: list[str]) -> list[str]:
    """Resolve glob patterns to an ordered, de-duplicated list of files.

    Patterns are applied in order and matches of each pattern are sorted
    lexically; a path matched by an earlier pattern keeps its first
    position. Returned paths are relative to ``root`` in POSIX form.
    """
    seen: set[str] = set()
    resolved: list[str] = []
    for pattern in patterns:
        matches = sorted(
            p.relative_to(root).as_posix()
            for p in root.glob(pattern)
            if p.is_file()
        )
        if not matches:
            logger.debug("Pattern matched no files: %s", pattern)
        for rel in matches:
            if rel not in seen:
                seen.add(rel)
                resolved.append(rel)
    return resolved


def read_file(path: Path) -> bytes | None:
    """Read raw bytes, or None when the file does not exist."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def read_tree(root: Path, kind: ArtifactKind) -> ArtifactSet:
    """Read every file under ``root`` into an ArtifactSet.

    A missing root yields an empty set (nothing committed yet).
    """
    files: dict[str, bytes] = {}
    if root.is_dir():
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            data = read_file(path)
            if data is not None:
                files[path.relative_to(root).as_posix()] = data
    return ArtifactSet(kind=kind, files=files)


def sync_tree(root: Path, generated: ArtifactSet, report: DriftReport) -> int:
    """Bring the committed subtree in line with the generated artifacts.

    Writes added and modified files, deletes removed ones, and returns the
    number of paths touched. Unchanged files are left alone.
    """
    touched = 0
    for entry in report.changed():
        target = root / entry.path
        if entry.status == DriftStatus.REMOVED:
            if target.exists():
                target.unlink()
                logger.info("Deleted stale artifact: %s", target)
            touched += 1
            continue

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(generated.files[entry.path])
        logger.info("Wrote artifact (%s): %s", entry.status.value, target)
        touched += 1
    return touched
