# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/errors.py

"""Exceptions raised by snaptrail."""


class SnaptrailError(Exception):
    """Base class for snaptrail errors."""


class SnapshotNotFoundError(SnaptrailError):
    """Raised when a requested snapshot is not in the catalog."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Snapshot not found: {path}")


class LineSourceError(SnaptrailError):
    """Raised when the diff-dump pipeline exits non-zero."""
    def __init__(self, returncode: int, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Dump pipeline failed with return code {returncode}"
        if stderr:
            msg += f"\nSTDERR: {stderr[:500]}"  # Truncate to avoid huge messages
        super().__init__(msg)


class ChangeStreamError(SnaptrailError):
    """Raised when a change stream ends with an error event."""


class CatalogError(SnaptrailError):
    """Raised when snapshots cannot be listed."""


class IndexingError(SnaptrailError):
    """Raised when a snapshot pair cannot be indexed."""
    def __init__(self, snapshot_path: str, cause: Exception):
        self.snapshot_path = snapshot_path
        self.cause = cause
        super().__init__(f"Failed to index {snapshot_path}: {cause}")
