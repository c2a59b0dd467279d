# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/clients/base.py

"""Collaborator interfaces: dump line sources and snapshot catalogs."""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence


class Snapshot(NamedTuple):
    """Snapshot identity as supplied by a catalog."""
    path: str  # Snapshot path relative to the btrfs root
    created_at: datetime


class LineSource(ABC):
    """Text lines of one diff dump, which can be stopped at any time."""

    @abstractmethod
    def __iter__(self) -> Iterator[str]:
        """Yield dump lines without trailing newlines."""

    @abstractmethod
    def close(self) -> None:
        """Release the source, terminating any backing process."""

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class SnapshotCatalog(ABC):
    """Chronological snapshot listing per subvolume root."""

    @abstractmethod
    def list_snapshots(self, subvolume_path: str) -> List[Snapshot]:
        """Return snapshots of a subvolume root, oldest first."""

    @abstractmethod
    def find(self, snapshot_path: str) -> Optional[Snapshot]:
        """Look a snapshot up by path across all roots this catalog knows."""


class StaticLineSource(LineSource):
    """In-memory line source."""

    def __init__(self, lines: Iterable[str]):
        self._lines = list(lines)
        self.closed = False
        self.consumed = 0

    def __iter__(self) -> Iterator[str]:
        for line in self._lines:
            if self.closed:
                return
            self.consumed += 1
            yield line

    def close(self) -> None:
        self.closed = True


class FileLineSource(LineSource):
    """Replays a saved `btrfs receive --dump` output file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._handle = None

    def __iter__(self) -> Iterator[str]:
        self._handle = self.path.open("r", encoding="utf-8", errors="surrogateescape")
        for line in self._handle:
            yield line.rstrip("\n")

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class StaticSnapshotCatalog(SnapshotCatalog):
    """Catalog built from an explicit mapping of root -> snapshots."""

    def __init__(self, snapshots: Dict[str, Sequence[Snapshot]]):
        self._snapshots = {
            root: sorted(items, key=lambda s: s.created_at)
            for root, items in snapshots.items()
        }

    def list_snapshots(self, subvolume_path: str) -> List[Snapshot]:
        return list(self._snapshots.get(subvolume_path, []))

    def find(self, snapshot_path: str) -> Optional[Snapshot]:
        for items in self._snapshots.values():
            for snapshot in items:
                if snapshot.path == snapshot_path:
                    return snapshot
        return None
