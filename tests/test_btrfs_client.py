# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# snaptrail/tests/test_btrfs_client.py

import shutil
import subprocess
from datetime import datetime
from pathlib import Path

import pytest

from snaptrail.clients import btrfs_client
from snaptrail.clients.btrfs_client import (
    BtrfsDumpSource,
    BtrfsSnapshotCatalog,
    full_path,
    parse_subvolume_list,
)
from snaptrail.changes.models import ChangeKind, ErrorEvent, FileChange, ProgressEvent
from snaptrail.changes.stream import StreamDriver
from snaptrail.errors import CatalogError

SUBVOLUME_LIST = """\
ID 262 gen 40 cgen 40 top level 5 otime 2026-01-03 00:00:00 path @snapshots/2/snapshot
ID 259 gen 14 cgen 14 top level 5 otime 2026-01-01 00:00:00 path @snapshots/1/snapshot
ID 270 gen 51 cgen 51 top level 5 otime 2026-01-02 12:30:00 path @home-snapshots/1/snapshot
ID 271 gen 52 cgen 52 top level 5 otime - path @snapshots/broken
garbage line
"""


def test_parse_subvolume_list():
    snapshots = parse_subvolume_list(SUBVOLUME_LIST)
    assert [s.path for s in snapshots] == [
        "/@snapshots/1/snapshot",
        "/@home-snapshots/1/snapshot",
        "/@snapshots/2/snapshot",
    ]
    assert snapshots[0].created_at == datetime(2026, 1, 1, 0, 0, 0)


def test_full_path():
    assert full_path(Path("/mnt/btrfs"), "/@snapshots/1/snapshot") == "/mnt/btrfs/@snapshots/1/snapshot"
    assert full_path(Path("/"), "@snapshots/1/snapshot") == "/@snapshots/1/snapshot"


def test_dump_source_commands():
    source = BtrfsDumpSource(Path("/mnt/btrfs"), "/@snapshots/1/snapshot", "/@snapshots/2/snapshot")
    assert source.send_cmd == [
        "btrfs", "send", "-p",
        "/mnt/btrfs/@snapshots/1/snapshot", "/mnt/btrfs/@snapshots/2/snapshot",
    ]
    assert source.receive_cmd == ["btrfs", "receive", "--dump"]
    source.close()


class TestBtrfsSnapshotCatalog:

    def test_list_filters_by_root(self, monkeypatch):
        monkeypatch.setattr(btrfs_client, "run_btrfs", lambda args: SUBVOLUME_LIST)
        catalog = BtrfsSnapshotCatalog(Path("/mnt/btrfs"))
        assert [s.path for s in catalog.list_snapshots("/@snapshots")] == [
            "/@snapshots/1/snapshot",
            "/@snapshots/2/snapshot",
        ]
        assert catalog.list_snapshots("@home-snapshots/")[0].path == "/@home-snapshots/1/snapshot"

    def test_find(self, monkeypatch):
        monkeypatch.setattr(btrfs_client, "run_btrfs", lambda args: SUBVOLUME_LIST)
        catalog = BtrfsSnapshotCatalog(Path("/mnt/btrfs"))
        assert catalog.find("@snapshots/2/snapshot").created_at == datetime(2026, 1, 3)
        assert catalog.find("/@snapshots/9/snapshot") is None

    def test_listing_failure_is_catalog_error(self, monkeypatch):
        def fail(args):
            raise subprocess.CalledProcessError(1, ["btrfs"] + args, stderr="ERROR: not a btrfs filesystem")

        monkeypatch.setattr(btrfs_client, "run_btrfs", fail)
        with pytest.raises(CatalogError, match="not a btrfs filesystem"):
            BtrfsSnapshotCatalog(Path("/tmp")).list_snapshots("/@snapshots")


def dump_source(send_cmd, receive_cmd):
    """BtrfsDumpSource with stand-in commands for both pipeline ends."""
    source = BtrfsDumpSource(Path("/"), "/@snapshots/1/snapshot", "/@snapshots/2/snapshot")
    source.send_cmd = send_cmd
    source.receive_cmd = receive_cmd
    return source


@pytest.mark.skipif(
    any(shutil.which(cmd) is None for cmd in ("yes", "cat", "sh", "printf")),
    reason="needs coreutils and a POSIX shell",
)
class TestBtrfsDumpSource:
    """The pipeline runs as real processes and never outlives its reader."""

    def test_abandoned_stream_terminates_both_processes(self):
        source = dump_source(["yes"], ["cat"])
        driver = StreamDriver(lambda old, new: source, progress_interval=1)
        events = driver.stream("a", "b")

        assert isinstance(next(events), ProgressEvent)
        assert source._send.poll() is None
        assert source._receive.poll() is None

        events.close()
        assert source._send.poll() is not None
        assert source._receive.poll() is not None

    def test_lines_flow_through(self):
        source = dump_source(
            ["printf", "mkdir ./s/docs\\nwrite ./s/a.txt offset=0 len=3\\n"],
            ["cat"],
        )
        result = StreamDriver(lambda old, new: source).collect("a", "b")
        assert result.changes == (
            FileChange(kind=ChangeKind.MKDIR, path="docs"),
            FileChange(kind=ChangeKind.WRITE, path="a.txt", size=3),
        )

    def test_failed_pipeline_is_error_event(self):
        source = dump_source(
            ["true"],
            ["sh", "-c", "echo 'ERROR: cannot find parent subvolume' >&2; exit 1"],
        )
        events = list(StreamDriver(lambda old, new: source).stream("a", "b"))

        assert len(events) == 1
        assert isinstance(events[0], ErrorEvent)
        assert "return code 1" in events[0].message
        assert "cannot find parent subvolume" in events[0].message
