# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# snaptrail/tests/conftest.py

from datetime import datetime

import pytest

from snaptrail.clients.base import LineSource, Snapshot, StaticLineSource
from snaptrail.errors import LineSourceError
from snaptrail.service.database.operations import DatabaseManager

ROOT = "/@snapshots"
S0 = Snapshot(path="/@snapshots/s0", created_at=datetime(2026, 1, 1, 0, 0, 0))
S1 = Snapshot(path="/@snapshots/s1", created_at=datetime(2026, 1, 2, 0, 0, 0))
S2 = Snapshot(path="/@snapshots/s2", created_at=datetime(2026, 1, 3, 0, 0, 0))
S3 = Snapshot(path="/@snapshots/s3", created_at=datetime(2026, 1, 4, 0, 0, 0))


class FailingLineSource(LineSource):
    """Yields its lines, then fails like a crashed dump pipeline."""

    def __init__(self, lines=()):
        self._lines = list(lines)
        self.closed = False

    def __iter__(self):
        yield from self._lines
        raise LineSourceError(1, "ERROR: send ioctl failed")

    def close(self):
        self.closed = True


class SourceFactory:
    """Line source factory that serves canned dumps per snapshot pair."""

    def __init__(self, dumps=None):
        self.dumps = dict(dumps or {})
        self.calls = []
        self.sources = []
        self.failing = set()

    def __call__(self, old, new):
        self.calls.append((old, new))
        if (old, new) in self.failing:
            source = FailingLineSource()
        else:
            source = StaticLineSource(self.dumps.get((old, new), []))
        self.sources.append(source)
        return source


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path}/file-history.db")
    manager.create_tables()
    yield manager
    manager.dispose()
