# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/changes/aggregator.py

"""Deduplication of changes by (kind, path)."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Tuple

from . import pathcodec
from .models import ChangeKind, ChangeSummary, FileChange

# summary bucket per kind; clone counts towards no bucket
SUMMARY_BUCKETS = MappingProxyType({
    ChangeKind.MKDIR: "added",
    ChangeKind.LINK: "added",
    ChangeKind.SYMLINK: "added",
    ChangeKind.WRITE: "modified",
    ChangeKind.TRUNCATE: "modified",
    ChangeKind.UNLINK: "deleted",
    ChangeKind.RMDIR: "deleted",
    ChangeKind.RENAME: "renamed",
})


def summarize(changes: Iterable[FileChange]) -> ChangeSummary:
    counts = {"added": 0, "modified": 0, "deleted": 0, "renamed": 0}
    for change in changes:
        bucket = SUMMARY_BUCKETS.get(change.kind)
        if bucket:
            counts[bucket] += 1
    return ChangeSummary(**counts)


class ChangeAggregator:
    """Keeps exactly one FileChange per (kind, path), in first-seen order."""

    def __init__(self):
        self._changes: Dict[Tuple[ChangeKind, str], FileChange] = {}

    def __len__(self) -> int:
        return len(self._changes)

    def add(self, change: FileChange) -> Optional[FileChange]:
        """Fold a change in and return the stored value, or None if rejected.

        Repeated writes sum their sizes; any other repeat keeps the first
        value. Orphan paths are always rejected.
        """
        if pathcodec.is_orphan(change.path):
            return None
        existing = self._changes.get(change.key)
        if existing is None:
            self._changes[change.key] = change
            return change
        if change.size:
            existing = existing.model_copy(update={"size": (existing.size or 0) + change.size})
            self._changes[change.key] = existing
        return existing

    def changes(self) -> List[FileChange]:
        return list(self._changes.values())

    def summary(self) -> ChangeSummary:
        return summarize(self._changes.values())
