# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/service/timeline.py

"""Read models for per-file timelines and index progress."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel

from snaptrail.changes.models import ChangeKind


class HistoryChange(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class TimelineStatus(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class IndexState(str, Enum):
    BUILDING = "building"
    COMPLETE = "complete"
    ERROR = "error"


# clone rewrites file extents, so history counts it as a modification
HISTORY_CHANGES = MappingProxyType({
    ChangeKind.MKDIR: HistoryChange.CREATED,
    ChangeKind.LINK: HistoryChange.CREATED,
    ChangeKind.SYMLINK: HistoryChange.CREATED,
    ChangeKind.WRITE: HistoryChange.MODIFIED,
    ChangeKind.TRUNCATE: HistoryChange.MODIFIED,
    ChangeKind.CLONE: HistoryChange.MODIFIED,
    ChangeKind.UNLINK: HistoryChange.DELETED,
    ChangeKind.RMDIR: HistoryChange.DELETED,
    ChangeKind.RENAME: HistoryChange.RENAMED,
})

DIRECTORY_KINDS = frozenset({ChangeKind.MKDIR, ChangeKind.RMDIR})


class HistoryEntry(BaseModel):
    snapshot_path: str
    snapshot_created_at: datetime
    path: str
    change_type: HistoryChange
    previous_path: str | None = None
    size: int | None = None
    is_directory: bool = False


class Timeline(BaseModel):
    """History of one logical file; aliases start with the current path."""

    current_path: str
    aliases: list[str]
    history: list[HistoryEntry]
    first_seen: datetime
    last_seen: datetime
    status: TimelineStatus


class IndexStatus(BaseModel):
    exists: bool
    complete: bool
    current: int
    total: int
