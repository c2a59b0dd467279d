# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/clients/btrfs_client.py

"""btrfs-backed line source and snapshot catalog."""

import re
import subprocess
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    before_log,
    after_log,
    retry_if_exception_type,
)

from snaptrail.errors import CatalogError, LineSourceError

from .base import LineSource, Snapshot, SnapshotCatalog

# "ID 259 gen 14 cgen 14 top level 5 otime 2024-01-15 10:00:00 path @snapshots/12/snapshot"
_SUBVOLUME_RE = re.compile(r"\botime (?P<otime>\S+ \S+) path (?P<path>.+)$")


def full_path(btrfs_root: Path, snapshot_path: str) -> str:
    """Join a catalog snapshot path onto the mounted btrfs root."""
    return str(Path(btrfs_root) / snapshot_path.lstrip("/"))


class BtrfsDumpSource(LineSource):
    """Runs `btrfs send -p OLD NEW | btrfs receive --dump` and yields its lines.

    The two processes are connected directly, not through a shell, so
    snapshot paths need no quoting.
    """

    def __init__(self, btrfs_root: Path, old_snapshot: str, new_snapshot: str):
        self.send_cmd = [
            "btrfs", "send", "-p",
            full_path(btrfs_root, old_snapshot), full_path(btrfs_root, new_snapshot),
        ]
        self.receive_cmd = ["btrfs", "receive", "--dump"]
        self._send: Optional[subprocess.Popen] = None
        self._receive: Optional[subprocess.Popen] = None
        self._stderr = None

    def __iter__(self) -> Iterator[str]:
        logger.debug(f"Running: {' '.join(self.send_cmd)} | {' '.join(self.receive_cmd)}")
        self._stderr = tempfile.TemporaryFile()
        self._send = subprocess.Popen(
            self.send_cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL,
        )
        self._receive = subprocess.Popen(
            self.receive_cmd,
            stdin=self._send.stdout,
            stdout=subprocess.PIPE,
            stderr=self._stderr,
            text=True,
            errors="surrogateescape",
        )
        # receive owns the pipe now; send gets SIGPIPE if receive exits
        self._send.stdout.close()

        for line in self._receive.stdout:
            yield line.rstrip("\n")

        receive_rc = self._receive.wait()
        send_rc = self._send.wait()
        if receive_rc != 0 or send_rc != 0:
            self._stderr.seek(0)
            stderr = self._stderr.read().decode("utf-8", errors="replace")
            raise LineSourceError(receive_rc or send_rc, stderr)

    def close(self) -> None:
        for proc in (self._receive, self._send):
            if proc is None or proc.poll() is not None:
                continue
            logger.warning(f"Terminating unfinished process {proc.args[0]} {proc.args[1]} (pid {proc.pid})")
            proc.terminate()
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
        if self._receive is not None and self._receive.stdout is not None:
            self._receive.stdout.close()
        if self._stderr is not None:
            self._stderr.close()
            self._stderr = None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(subprocess.CalledProcessError),
    before=before_log(logger, "DEBUG"),
    after=after_log(logger, "WARNING"),
    reraise=True,
)
def run_btrfs(args: List[str]) -> str:
    """Run a read-only btrfs query and return stdout."""
    result = subprocess.run(["btrfs"] + args, text=True, capture_output=True, check=True)
    return result.stdout


def parse_subvolume_list(output: str) -> List[Snapshot]:
    """Parse `btrfs subvolume list -s` output into snapshots, oldest first."""
    snapshots = []
    for line in output.splitlines():
        match = _SUBVOLUME_RE.search(line.strip())
        if not match:
            continue
        try:
            created_at = datetime.strptime(match.group("otime"), "%Y-%m-%d %H:%M:%S")
        except ValueError:
            logger.warning(f"Skipping snapshot without creation time: {line.strip()}")
            continue
        snapshots.append(Snapshot(path=f"/{match.group('path')}", created_at=created_at))
    snapshots.sort(key=lambda s: s.created_at)
    return snapshots


class BtrfsSnapshotCatalog(SnapshotCatalog):
    """Lists snapshots with `btrfs subvolume list -s` on the mounted root."""

    def __init__(self, btrfs_root: Path):
        self.btrfs_root = Path(btrfs_root)

    def _all_snapshots(self) -> List[Snapshot]:
        try:
            output = run_btrfs(["subvolume", "list", "-s", str(self.btrfs_root)])
        except subprocess.CalledProcessError as e:
            raise CatalogError(f"btrfs subvolume list failed: {e.stderr or e}") from e
        except FileNotFoundError as e:
            raise CatalogError("btrfs executable not found") from e
        return parse_subvolume_list(output)

    def list_snapshots(self, subvolume_path: str) -> List[Snapshot]:
        prefix = "/" + subvolume_path.strip("/") + "/"
        snapshots = [s for s in self._all_snapshots() if s.path.startswith(prefix)]
        logger.debug(f"Found {len(snapshots)} snapshots under {subvolume_path}")
        return snapshots

    def find(self, snapshot_path: str) -> Optional[Snapshot]:
        wanted = "/" + snapshot_path.strip("/")
        for snapshot in self._all_snapshots():
            if snapshot.path == wanted:
                return snapshot
        return None
