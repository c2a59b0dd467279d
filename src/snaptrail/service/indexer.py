# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/service/indexer.py

"""Per-file timelines built by replaying a snapshot chain.

Each snapshot is compared with its predecessor and every resulting change is
folded into a timeline: one row per logical file, carried across renames by
its aliases. The oldest snapshot of a chain has no predecessor and is not
indexed on its own, so a file's timeline starts at its first observed change.

Progress is committed together with each snapshot's history, so an
interrupted build resumes after the last committed snapshot.
"""

from typing import Callable, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from snaptrail.changes.models import ChangeKind, FileChange
from snaptrail.changes.stream import StreamDriver
from snaptrail.clients.base import Snapshot, SnapshotCatalog
from snaptrail.errors import IndexingError, SnaptrailError

from .database.operations import DatabaseManager
from .timeline import (
    DIRECTORY_KINDS,
    HISTORY_CHANGES,
    HistoryChange,
    HistoryEntry,
    IndexState,
    IndexStatus,
    Timeline,
    TimelineStatus,
)

ProgressCallback = Callable[[int, int], None]


class TimelineIndexer:
    """Maintains file timelines for the snapshot roots of one catalog."""

    def __init__(self, db: DatabaseManager, catalog: SnapshotCatalog, driver: StreamDriver):
        self.db = db
        self.catalog = catalog
        self.driver = driver

    # -- building ---------------------------------------------------------

    def build_index(
        self,
        subvolume_path: str,
        force: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """Index every snapshot not yet indexed; return how many were processed.

        Args:
            subvolume_path: Snapshot root whose chain is replayed
            force: Drop the root's timelines and stored progress, then start
                from the first snapshot
            on_progress: Called with (indexed, total) after each snapshot
        """
        snapshots = self.catalog.list_snapshots(subvolume_path)
        if force:
            self.db.clear_subvolume(subvolume_path)
            start = 0
        else:
            start = self._resume_index(subvolume_path, snapshots)
        total = len(snapshots)
        processed = 0

        for i in range(start, total):
            current = snapshots[i]
            previous = snapshots[i - 1] if i > 0 else None
            logger.info(f"Indexing snapshot {i + 1}/{total}: {current.path}")

            try:
                changes = self._changes_between(previous, current)
                with self.db.session_scope() as session:
                    for change in changes:
                        self._apply_change(session, subvolume_path, change, current)
                    status = IndexState.COMPLETE if i == total - 1 else IndexState.BUILDING
                    self.db.update_index_metadata(
                        session, subvolume_path, current.path, i + 1, total, status.value,
                    )
            except SnaptrailError as e:
                logger.error(f"Indexing stopped at {current.path}: {e}")
                self.db.set_index_status(subvolume_path, IndexState.ERROR.value)
                raise IndexingError(current.path, e) from e

            processed += 1
            if on_progress:
                on_progress(i + 1, total)

        if processed:
            logger.success(f"Indexed {processed} snapshots of {subvolume_path}")
        return processed

    def rebuild_index(self, subvolume_path: str, on_progress: Optional[ProgressCallback] = None) -> int:
        """Drop all timelines of a root and replay its chain from the start."""
        logger.info(f"Rebuilding file index for {subvolume_path}")
        return self.build_index(subvolume_path, force=True, on_progress=on_progress)

    def index_latest_snapshot(self, subvolume_path: str) -> int:
        """Bring the index up to date if the newest snapshot is not indexed yet."""
        snapshots = self.catalog.list_snapshots(subvolume_path)
        if not snapshots:
            logger.info(f"No snapshots found for {subvolume_path}")
            return 0
        metadata = self.db.get_index_metadata(subvolume_path)
        if metadata is not None and metadata.last_indexed_snapshot == snapshots[-1].path:
            logger.info(f"Latest snapshot {snapshots[-1].path} is already indexed")
            return 0
        return self.build_index(subvolume_path)

    def _resume_index(self, subvolume_path: str, snapshots: List[Snapshot]) -> int:
        metadata = self.db.get_index_metadata(subvolume_path)
        if metadata is None or not metadata.last_indexed_snapshot:
            return 0
        for i, snapshot in enumerate(snapshots):
            if snapshot.path == metadata.last_indexed_snapshot:
                return i + 1
        # replaying on top of existing rows would duplicate history
        logger.warning(
            f"Last indexed snapshot {metadata.last_indexed_snapshot} is gone; "
            f"rebuilding {subvolume_path} from scratch"
        )
        self.db.clear_subvolume(subvolume_path)
        return 0

    def _changes_between(self, previous: Optional[Snapshot], current: Snapshot) -> List[FileChange]:
        if previous is None:
            logger.info("First snapshot - skipping initial full index")
            return []
        result = self.driver.collect(previous.path, current.path)
        logger.debug(f"{len(result.changes)} changes between {previous.path} and {current.path}")
        return list(result.changes)

    def _apply_change(self, session: Session, subvolume_path: str, change: FileChange, snapshot: Snapshot):
        change_type = HISTORY_CHANGES.get(change.kind)
        if change_type is None:
            return
        is_directory = change.kind in DIRECTORY_KINDS
        previous_path = change.old_path if change.kind is ChangeKind.RENAME else None

        if change_type is HistoryChange.RENAMED and previous_path:
            timeline = self.db.find_timeline_by_path_or_alias(session, subvolume_path, previous_path)
            if timeline is not None:
                occupant = self.db.get_timeline_by_path(session, subvolume_path, change.path)
                if occupant is None or occupant.id == timeline.id:
                    self.db.move_timeline(session, timeline, change.path, snapshot.created_at)
                    self.db.add_history_entry(
                        session, timeline.id, snapshot.path, snapshot.created_at,
                        change.path, change_type.value, previous_path, change.size, is_directory,
                    )
                    return
                logger.warning(
                    f"Rename {previous_path} -> {change.path} lands on a tracked path; "
                    f"recording it on the timeline already at {change.path}"
                )

        status = TimelineStatus.DELETED if change_type is HistoryChange.DELETED else TimelineStatus.ACTIVE
        timeline = self.db.upsert_timeline(
            session, subvolume_path, change.path, status.value, snapshot.created_at,
        )
        if previous_path:
            self.db.add_alias(session, timeline.id, previous_path)
        self.db.add_history_entry(
            session, timeline.id, snapshot.path, snapshot.created_at,
            change.path, change_type.value, previous_path, change.size, is_directory,
        )

    # -- queries ----------------------------------------------------------

    def get_file_history(self, subvolume_path: str, file_path: str) -> Optional[Timeline]:
        """Timeline of the file at `file_path` now or under any earlier name."""
        with self.db.get_session() as session:
            timeline = self.db.find_timeline_by_path_or_alias(session, subvolume_path, file_path)
            if timeline is None:
                return None
            aliases = [timeline.current_path]
            for alias in self.db.get_aliases(session, timeline.id):
                if alias not in aliases:
                    aliases.append(alias)
            history = [
                HistoryEntry(
                    snapshot_path=entry.snapshot_path,
                    snapshot_created_at=entry.snapshot_created_at,
                    path=entry.path,
                    change_type=entry.change_type,
                    previous_path=entry.previous_path,
                    size=entry.size,
                    is_directory=entry.is_directory,
                )
                for entry in self.db.get_history(session, timeline.id)
            ]
            return Timeline(
                current_path=timeline.current_path,
                aliases=aliases,
                history=history,
                first_seen=timeline.first_seen,
                last_seen=timeline.last_seen,
                status=timeline.status,
            )

    def get_index_status(self, subvolume_path: str) -> IndexStatus:
        metadata = self.db.get_index_metadata(subvolume_path)
        total = len(self.catalog.list_snapshots(subvolume_path))
        return IndexStatus(
            exists=metadata is not None,
            complete=metadata is not None and metadata.status == IndexState.COMPLETE.value,
            current=metadata.indexed_snapshots if metadata is not None else 0,
            total=total,
        )

    def needs_initial_build(self, subvolume_path: str) -> bool:
        metadata = self.db.get_index_metadata(subvolume_path)
        return metadata is None or metadata.indexed_snapshots == 0
