# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/service/database/models.py

"""SQLAlchemy models for the file timeline index."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class FileTimeline(Base):
    """One logical file within a subvolume, followed across renames."""

    __tablename__ = "file_timelines"
    __table_args__ = (UniqueConstraint("subvolume_path", "current_path"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identification
    subvolume_path = Column(Text, nullable=False)  # Snapshot root, e.g. /@snapshots
    current_path = Column(Text, nullable=False)  # Latest known snapshot-relative path

    # Lifecycle
    status = Column(Text, nullable=False, default="active")  # active, deleted
    first_seen = Column(DateTime, nullable=False)
    last_seen = Column(DateTime, nullable=False)

    # Relationships
    aliases = relationship(
        "FileAlias", back_populates="timeline",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    history = relationship(
        "FileHistoryEntry", back_populates="timeline",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def __repr__(self):
        return f"<FileTimeline(id={self.id}, path={self.current_path}, status={self.status})>"


class FileAlias(Base):
    """A path a timeline's file held before a rename."""

    __tablename__ = "file_aliases"
    __table_args__ = (UniqueConstraint("timeline_id", "path"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    timeline_id = Column(Integer, ForeignKey("file_timelines.id", ondelete="CASCADE"), nullable=False)
    path = Column(Text, nullable=False)

    timeline = relationship("FileTimeline", back_populates="aliases")

    def __repr__(self):
        return f"<FileAlias(timeline_id={self.timeline_id}, path={self.path})>"


class FileHistoryEntry(Base):
    """One change to a timeline's file, observed in one snapshot."""

    __tablename__ = "file_history_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timeline_id = Column(Integer, ForeignKey("file_timelines.id", ondelete="CASCADE"), nullable=False)

    # Where the change was observed
    snapshot_path = Column(Text, nullable=False)
    snapshot_created_at = Column(DateTime, nullable=False)

    # What changed
    path = Column(Text, nullable=False)
    change_type = Column(Text, nullable=False)  # created, modified, deleted, renamed
    previous_path = Column(Text, nullable=True)  # renamed only
    size = Column(Integer, nullable=True)  # Bytes written, when known
    is_directory = Column(Boolean, nullable=False, default=False)

    timeline = relationship("FileTimeline", back_populates="history")

    def __repr__(self):
        return f"<FileHistoryEntry(timeline_id={self.timeline_id}, {self.change_type} {self.path})>"


class IndexMetadata(Base):
    """Resumable indexing progress per subvolume root."""

    __tablename__ = "index_metadata"

    subvolume_path = Column(Text, primary_key=True)
    last_indexed_snapshot = Column(Text, nullable=True)
    indexed_snapshots = Column(Integer, nullable=False, default=0)
    total_snapshots = Column(Integer, nullable=False, default=0)
    status = Column(Text, nullable=False, default="building")  # building, complete, error
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<IndexMetadata(subvolume={self.subvolume_path}, {self.indexed_snapshots}/{self.total_snapshots}, status={self.status})>"


# Performance indexes
Index("idx_timelines_subvolume", FileTimeline.subvolume_path)
Index("idx_aliases_path", FileAlias.path)
Index("idx_history_timeline", FileHistoryEntry.timeline_id, FileHistoryEntry.snapshot_created_at)
