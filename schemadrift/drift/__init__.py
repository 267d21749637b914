"""Drift comparison between generated and committed artifacts."""

from schemadrift.drift.comparator import DriftComparator, compare, unified_diff

__all__ = ["DriftComparator", "compare", "unified_diff"]
