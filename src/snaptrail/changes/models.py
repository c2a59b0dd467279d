# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/changes/models.py

"""Value types for the change-extraction engine."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


class ChangeKind(str, Enum):
    WRITE = "write"
    RENAME = "rename"
    UNLINK = "unlink"
    RMDIR = "rmdir"
    MKDIR = "mkdir"
    LINK = "link"
    SYMLINK = "symlink"
    TRUNCATE = "truncate"
    CLONE = "clone"

    @classmethod
    def from_keyword(cls, keyword: str) -> ChangeKind | None:
        """Return the kind for a dump keyword, or None for noise keywords."""
        try:
            return cls(keyword.lower())
        except ValueError:
            return None


class FileChange(BaseModel):
    """One deduplicated change to a snapshot-relative path."""

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    path: str
    old_path: str | None = None  # rename only
    size: NonNegativeInt | None = None  # write only, bytes touched

    @property
    def key(self) -> tuple[ChangeKind, str]:
        return (self.kind, self.path)


class ChangeSummary(BaseModel):
    added: int = 0
    modified: int = 0
    deleted: int = 0
    renamed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.modified + self.deleted + self.renamed


class ComparisonResult(BaseModel):
    """Final output of one (old, new) comparison."""

    model_config = ConfigDict(frozen=True)

    changes: tuple[FileChange, ...]
    summary: ChangeSummary


# Events produced by the stream driver. Exactly one DoneEvent or ErrorEvent
# terminates every stream.

class ProgressEvent(BaseModel):
    type: Literal["progress"] = "progress"
    message: str


class ChangeEvent(BaseModel):
    type: Literal["change"] = "change"
    data: FileChange


class DoneEvent(BaseModel):
    type: Literal["done"] = "done"
    message: str
    summary: ChangeSummary


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    Union[ProgressEvent, ChangeEvent, DoneEvent, ErrorEvent],
    Field(discriminator="type"),
]
