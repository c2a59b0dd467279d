# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/changes/orphans.py

"""Resolution of btrfs orphan objects into user-visible changes.

`btrfs send` never deletes a path directly when the deletion can collide with
later operations. It first renames the victim to a numbered orphan
(`o<ino>-<gen>-<idx>`) and only later issues the real removal against the
orphan: `rmdir` for a directory, `unlink` for a file. New inodes travel the
other way, created under an orphan name and renamed into place.

Transitions, in input order:

    rename A -> B   B orphan, A not     register pending delete of A under B
    rename A -> B   A orphan, B not     link(B), B newly created; a pending
                                        delete under A stays queued
    rename A -> B   both orphans        pending moves from A to B
    rename A -> B   neither             rename(A -> B)
    rmdir  P        P orphan, pending   emit pending as rmdir
    unlink P        P orphan, pending   emit pending unchanged
    rmdir/unlink P  P orphan, none      discard (orphan cleanup)
    any    P        P orphan            discard
    write  P        P newly created     discard (the link already covers it)
    end of stream                       emit every remaining pending entry
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from loguru import logger

from . import pathcodec
from .models import ChangeKind, FileChange
from .parser import DumpLine


@dataclass
class PendingDelete:
    """A path renamed into an orphan, waiting for its removal call."""
    path: str
    kind: ChangeKind = ChangeKind.UNLINK

    def to_change(self) -> FileChange:
        return FileChange(kind=self.kind, path=self.path)


def orphan_path(raw: str, stripped: str) -> Optional[str]:
    """Return the orphan-relative form of a dump path, or None if not an orphan.

    Orphans show up both under the snapshot directory (`./snap/o257-12-0`)
    and bare (`o257-12-0/child`), so both spellings are checked.
    """
    if pathcodec.is_orphan(stripped):
        return stripped
    bare = raw[2:] if raw.startswith("./") else raw
    if pathcodec.is_orphan(bare):
        return bare
    return None


class OrphanResolver:
    """Single-pass state machine over parsed dump lines."""

    def __init__(self):
        self.pending: Dict[str, PendingDelete] = {}
        self.orphan_to_source: Dict[str, str] = {}
        self.newly_created: Set[str] = set()

    # -- pending-delete table -------------------------------------------

    def register_pending_delete(self, orphan: str, source: str) -> None:
        self.orphan_to_source[orphan] = source
        self.pending[orphan] = PendingDelete(path=source)
        logger.debug(f"Pending delete of {source} via {orphan}")

    def resolve_pending_delete(self, orphan: str) -> Optional[PendingDelete]:
        return self.pending.pop(orphan, None)

    # -- transitions ----------------------------------------------------

    def feed(self, line: DumpLine) -> List[FileChange]:
        """Consume one parsed line and return the changes it settles."""
        if line.kind is ChangeKind.RENAME:
            return self._on_rename(line)

        stripped = pathcodec.strip_root_prefix(line.path)
        orphan = orphan_path(line.path, stripped)
        if orphan is not None:
            return self._on_orphan_operation(line.kind, orphan)

        if line.kind is ChangeKind.WRITE and stripped in self.newly_created:
            return []
        size = line.size if line.kind is ChangeKind.WRITE else None
        return [FileChange(kind=line.kind, path=stripped, size=size)]

    def flush(self) -> List[FileChange]:
        """Emit pending deletes whose removal call never arrived."""
        remaining = [pending.to_change() for pending in self.pending.values()]
        if remaining:
            logger.debug(f"Flushing {len(remaining)} unresolved orphan deletes")
        self.pending.clear()
        return remaining

    def _on_rename(self, line: DumpLine) -> List[FileChange]:
        source = pathcodec.strip_root_prefix(line.path)
        dest = pathcodec.strip_root_prefix(line.dest or "")
        source_orphan = orphan_path(line.path, source)
        dest_orphan = orphan_path(line.dest or "", dest)

        if source_orphan is not None and dest_orphan is not None:
            pending = self.resolve_pending_delete(source_orphan)
            if pending is not None:
                self.register_pending_delete(dest_orphan, pending.path)
                self.pending[dest_orphan].kind = pending.kind
            return []

        if dest_orphan is not None:
            self.register_pending_delete(dest_orphan, source)
            return []

        if source_orphan is not None:
            self.newly_created.add(dest)
            return [FileChange(kind=ChangeKind.LINK, path=dest)]

        return [FileChange(kind=ChangeKind.RENAME, path=dest, old_path=source)]

    def _on_orphan_operation(self, kind: ChangeKind, orphan: str) -> List[FileChange]:
        if kind in (ChangeKind.RMDIR, ChangeKind.UNLINK):
            pending = self.resolve_pending_delete(orphan)
            if pending is not None:
                if kind is ChangeKind.RMDIR:
                    pending.kind = ChangeKind.RMDIR
                return [pending.to_change()]

        source = self.orphan_to_source.get(pathcodec.orphan_root(orphan))
        logger.debug(f"Discarding {kind.value} on orphan {orphan}" + (f" (was {source})" if source else ""))
        return []
