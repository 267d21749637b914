"""Drift comparator.

Classifies every path in the union of a generated and a committed
ArtifactSet. Comparison is byte-exact: whitespace and line-ending
differences count as drift. Callers that need normalisation must
canonicalise content before it reaches the comparator.
"""

from __future__ import annotations

import difflib
import logging
from pathlib import Path

from schemadrift.schemas.artifacts import ArtifactKind, ArtifactSet
from schemadrift.schemas.drift import DriftEntry, DriftReport, DriftStatus
from schemadrift.workspace import read_tree

logger = logging.getLogger(__name__)


def _is_binary(data: bytes) -> bool:
    if b"\x00" in data:
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return False


def unified_diff(path: str, committed: bytes, generated: bytes) -> str:
    """Unified line diff from the committed to the generated content."""
    if _is_binary(committed) or _is_binary(generated):
        return f"Binary files a/{path} and b/{path} differ\n"

    old_lines = committed.decode("utf-8").splitlines(keepends=True)
    new_lines = generated.decode("utf-8").splitlines(keepends=True)
    lines: list[str] = []
    for line in difflib.unified_diff(
        old_lines, new_lines,
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
    ):
        # Keep the diff line-oriented even when a side lacks a final newline
        if not line.endswith("\n"):
            line += "\n\\ No newline at end of file\n"
        lines.append(line)

    if not lines:
        return f"Files a/{path} and b/{path} differ\n"
    return "".join(lines)


def compare(
    generated: ArtifactSet,
    committed: ArtifactSet,
    *,
    schemas_validated: int = 0,
) -> DriftReport:
    """Compare generated artifacts against the committed snapshot.

    Args:
        generated: Fresh compiler output.
        committed: Snapshot of the committed output subtree.
        schemas_validated: Count carried into the report.

    Returns:
        DriftReport with one entry per path, sorted by path.
    """
    entries: list[DriftEntry] = []
    for path in sorted(set(generated.files) | set(committed.files)):
        new_hash = generated.digest(path)
        old_hash = committed.digest(path)

        if old_hash is None:
            status = DriftStatus.ADDED
        elif new_hash is None:
            status = DriftStatus.REMOVED
        elif new_hash == old_hash:
            status = DriftStatus.UNCHANGED
        else:
            status = DriftStatus.MODIFIED

        diff = None
        if status == DriftStatus.MODIFIED:
            diff = unified_diff(path, committed.files[path], generated.files[path])

        entries.append(DriftEntry(
            path=path,
            status=status,
            generated_hash=new_hash,
            committed_hash=old_hash,
            diff=diff,
        ))

    report = DriftReport(
        entries=entries,
        schemas_validated=schemas_validated,
        schemas_generated=len(generated),
    )
    logger.debug(
        "Compared %d paths (%d changed)", len(entries), len(report.changed())
    )
    return report


class DriftComparator:
    """Filesystem-facing side of the comparison for one output subtree.

    ``snapshot()`` must be taken before the compiler runs so that the
    baseline cannot be overwritten before it is compared.
    """

    def __init__(self, output_root: Path) -> None:
        self._output_root = output_root

    def snapshot(self) -> ArtifactSet:
        """Read the committed output subtree."""
        return read_tree(self._output_root, ArtifactKind.COMMITTED)

    def compare(
        self,
        generated: ArtifactSet,
        committed: ArtifactSet,
        *,
        schemas_validated: int = 0,
    ) -> DriftReport:
        return compare(generated, committed, schemas_validated=schemas_validated)
