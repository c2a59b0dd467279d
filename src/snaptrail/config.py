# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/config.py

"""Settings and the process-wide application context."""

from __future__ import annotations

import os
from pathlib import Path
from types import MappingProxyType
from typing import Final

from pydantic import BaseModel, PositiveInt, PositiveFloat

from snaptrail.changes.cache import DEFAULT_CACHE_TTL, ResultCache
from snaptrail.changes.stream import PROGRESS_INTERVAL, StreamDriver
from snaptrail.clients.base import LineSource, SnapshotCatalog
from snaptrail.clients.btrfs_client import BtrfsDumpSource, BtrfsSnapshotCatalog
from snaptrail.service.database.operations import DatabaseManager
from snaptrail.service.indexer import TimelineIndexer

DEFAULT_DATABASE_URL: Final = "sqlite:///./data/file-history.db"

ENV_VARS: Final = MappingProxyType({
    "btrfs_root": "SNAPTRAIL_BTRFS_ROOT",
    "database_url": "SNAPTRAIL_DATABASE_URL",
    "cache_ttl_seconds": "SNAPTRAIL_CACHE_TTL",
    "progress_interval": "SNAPTRAIL_PROGRESS_INTERVAL",
    "log_file": "SNAPTRAIL_LOG_FILE",
})


class Settings(BaseModel):
    btrfs_root: Path = Path("/")
    database_url: str = DEFAULT_DATABASE_URL
    cache_ttl_seconds: PositiveFloat = DEFAULT_CACHE_TTL
    progress_interval: PositiveInt = PROGRESS_INTERVAL
    log_file: str | None = None

    @classmethod
    def from_env(cls, config_file: Path | None = None, **overrides) -> Settings:
        """Build settings: JSON config file, then environment, then overrides."""
        values = {}
        if config_file is not None:
            values.update(cls.model_validate_json(Path(config_file).read_text()).model_dump(exclude_unset=True))
        for field, var in ENV_VARS.items():
            if var in os.environ:
                values[field] = os.environ[var]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class AppContext:
    """Everything a command needs, built once and disposed on exit."""

    def __init__(self, settings: Settings, catalog: SnapshotCatalog | None = None):
        self.settings = settings
        self.cache = ResultCache(ttl=settings.cache_ttl_seconds)
        self.catalog = catalog if catalog is not None else BtrfsSnapshotCatalog(settings.btrfs_root)
        self.driver = StreamDriver(
            self.make_line_source,
            cache=self.cache,
            catalog=self.catalog,
            progress_interval=settings.progress_interval,
        )
        self._db: DatabaseManager | None = None

    def make_line_source(self, old_snapshot: str, new_snapshot: str) -> LineSource:
        return BtrfsDumpSource(self.settings.btrfs_root, old_snapshot, new_snapshot)

    @property
    def db(self) -> DatabaseManager:
        if self._db is None:
            self._db = DatabaseManager(self.settings.database_url)
            self._db.create_tables()
        return self._db

    @property
    def indexer(self) -> TimelineIndexer:
        return TimelineIndexer(self.db, self.catalog, self.driver)

    def close(self) -> None:
        if self._db is not None:
            self._db.dispose()
            self._db = None
