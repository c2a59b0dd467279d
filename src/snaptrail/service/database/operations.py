# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/service/database/operations.py

"""Database operations for the file timeline index."""

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from sqlalchemy import create_engine, event, func, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from loguru import logger

from .models import Base, FileAlias, FileHistoryEntry, FileTimeline, IndexMetadata


class DatabaseManager:
    """Manages database connections and timeline operations.

    Write operations take the caller's session so that everything recorded
    for one snapshot commits together; read helpers open their own.
    """

    def __init__(self, database_url: str):
        """Initialize database manager.

        Args:
            database_url: SQLAlchemy database URL
                e.g., "sqlite:///data/file-history.db"
        """
        self.database_url = database_url
        self.is_sqlite = database_url.startswith("sqlite")
        if self.is_sqlite:
            self._ensure_sqlite_dir()
        self.engine = create_engine(
            database_url,
            connect_args={
                "timeout": 30.0,
                "check_same_thread": False,
            } if self.is_sqlite else {},
        )
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        if self.is_sqlite:
            event.listen(self.engine, "connect", self._configure_sqlite)

    def _ensure_sqlite_dir(self):
        database = make_url(self.database_url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _configure_sqlite(dbapi_connection, connection_record):
        """Per-connection SQLite settings."""
        cursor = dbapi_connection.cursor()
        # Enable WAL mode for better concurrency
        cursor.execute("PRAGMA journal_mode=WAL")
        # Cascading deletes of aliases and history
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    def create_tables(self):
        """Create all database tables."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables created")

    def dispose(self):
        """Close every pooled connection."""
        self.engine.dispose()

    def get_session(self) -> Session:
        """Get a database session."""
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -- timelines --------------------------------------------------------

    def get_timeline_by_path(self, session: Session, subvolume_path: str, path: str) -> Optional[FileTimeline]:
        return session.execute(
            select(FileTimeline).where(
                FileTimeline.subvolume_path == subvolume_path,
                FileTimeline.current_path == path,
            )
        ).scalar_one_or_none()

    def upsert_timeline(
        self,
        session: Session,
        subvolume_path: str,
        path: str,
        status: str,
        seen_at: datetime,
    ) -> FileTimeline:
        """Insert a timeline for (subvolume, path) or refresh the existing one.

        An existing row keeps its first_seen; status and last_seen are
        overwritten.
        """
        timeline = self.get_timeline_by_path(session, subvolume_path, path)
        if timeline is None:
            timeline = FileTimeline(
                subvolume_path=subvolume_path,
                current_path=path,
                status=status,
                first_seen=seen_at,
                last_seen=seen_at,
            )
            session.add(timeline)
        else:
            timeline.status = status
            timeline.last_seen = seen_at
        session.flush()
        return timeline

    def find_timeline_by_path_or_alias(
        self, session: Session, subvolume_path: str, path: str,
    ) -> Optional[FileTimeline]:
        """Timeline currently at `path`, else the latest one that used to be."""
        timeline = self.get_timeline_by_path(session, subvolume_path, path)
        if timeline is not None:
            return timeline
        return session.execute(
            select(FileTimeline)
            .join(FileAlias, FileAlias.timeline_id == FileTimeline.id)
            .where(FileTimeline.subvolume_path == subvolume_path, FileAlias.path == path)
            .order_by(FileTimeline.last_seen.desc(), FileTimeline.id.desc())
            .limit(1)
        ).scalars().first()

    def move_timeline(self, session: Session, timeline: FileTimeline, new_path: str, seen_at: datetime):
        """Point a timeline at its new path, keeping the old one as an alias."""
        old_path = timeline.current_path
        timeline.current_path = new_path
        timeline.last_seen = seen_at
        session.flush()
        self.add_alias(session, timeline.id, old_path)

    def add_alias(self, session: Session, timeline_id: int, path: str):
        exists = session.execute(
            select(FileAlias.id).where(FileAlias.timeline_id == timeline_id, FileAlias.path == path)
        ).first()
        if exists is None:
            session.add(FileAlias(timeline_id=timeline_id, path=path))
            session.flush()

    def add_history_entry(
        self,
        session: Session,
        timeline_id: int,
        snapshot_path: str,
        snapshot_created_at: datetime,
        path: str,
        change_type: str,
        previous_path: Optional[str] = None,
        size: Optional[int] = None,
        is_directory: bool = False,
    ):
        session.add(FileHistoryEntry(
            timeline_id=timeline_id,
            snapshot_path=snapshot_path,
            snapshot_created_at=snapshot_created_at,
            path=path,
            change_type=change_type,
            previous_path=previous_path,
            size=size,
            is_directory=is_directory,
        ))

    # -- queries ----------------------------------------------------------

    def get_aliases(self, session: Session, timeline_id: int) -> List[str]:
        return list(session.execute(
            select(FileAlias.path).where(FileAlias.timeline_id == timeline_id).order_by(FileAlias.id)
        ).scalars())

    def get_history(self, session: Session, timeline_id: int) -> List[FileHistoryEntry]:
        return list(session.execute(
            select(FileHistoryEntry)
            .where(FileHistoryEntry.timeline_id == timeline_id)
            .order_by(FileHistoryEntry.snapshot_created_at, FileHistoryEntry.id)
        ).scalars())

    def count_timelines(self, subvolume_path: str) -> int:
        with self.get_session() as session:
            return session.execute(
                select(func.count(FileTimeline.id)).where(FileTimeline.subvolume_path == subvolume_path)
            ).scalar_one()

    # -- index metadata ---------------------------------------------------

    def get_index_metadata(self, subvolume_path: str) -> Optional[IndexMetadata]:
        with self.get_session() as session:
            return session.get(IndexMetadata, subvolume_path)

    def update_index_metadata(
        self,
        session: Session,
        subvolume_path: str,
        last_indexed_snapshot: Optional[str],
        indexed: int,
        total: int,
        status: str = "building",
    ):
        metadata = session.get(IndexMetadata, subvolume_path)
        if metadata is None:
            metadata = IndexMetadata(subvolume_path=subvolume_path)
            session.add(metadata)
        metadata.last_indexed_snapshot = last_indexed_snapshot
        metadata.indexed_snapshots = indexed
        metadata.total_snapshots = total
        metadata.status = status
        metadata.updated_at = datetime.now()
        session.flush()

    def set_index_status(self, subvolume_path: str, status: str):
        with self.session_scope() as session:
            metadata = session.get(IndexMetadata, subvolume_path)
            if metadata is not None:
                metadata.status = status
                metadata.updated_at = datetime.now()

    def clear_subvolume(self, subvolume_path: str):
        """Delete every timeline, alias, history entry and progress record of a root."""
        timeline_ids = select(FileTimeline.id).where(FileTimeline.subvolume_path == subvolume_path)
        with self.session_scope() as session:
            history = session.execute(
                FileHistoryEntry.__table__.delete().where(FileHistoryEntry.timeline_id.in_(timeline_ids))
            ).rowcount
            session.execute(FileAlias.__table__.delete().where(FileAlias.timeline_id.in_(timeline_ids)))
            timelines = session.execute(
                FileTimeline.__table__.delete().where(FileTimeline.subvolume_path == subvolume_path)
            ).rowcount
            session.execute(
                IndexMetadata.__table__.delete().where(IndexMetadata.subvolume_path == subvolume_path)
            )
        logger.info(f"Cleared {timelines:,} timelines and {history:,} history entries for {subvolume_path}")
