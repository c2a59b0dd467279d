# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/cli/commands/compare.py

"""Compare command: changes between two snapshots."""

import typer
import humanize
from typing import Dict, Optional, Tuple
from pathlib import Path
from types import MappingProxyType

from loguru import logger

from snaptrail.changes.models import ChangeEvent, ChangeKind, DoneEvent, ErrorEvent, FileChange, ProgressEvent
from snaptrail.changes.stream import StreamDriver
from snaptrail.clients.base import FileLineSource
from snaptrail.errors import CatalogError, SnapshotNotFoundError

MARKERS = MappingProxyType({
    ChangeKind.MKDIR: "+",
    ChangeKind.LINK: "+",
    ChangeKind.SYMLINK: "+",
    ChangeKind.WRITE: "M",
    ChangeKind.TRUNCATE: "M",
    ChangeKind.CLONE: "M",
    ChangeKind.UNLINK: "-",
    ChangeKind.RMDIR: "-",
    ChangeKind.RENAME: "R",
})


def format_change(change: FileChange) -> str:
    marker = MARKERS[change.kind]
    if change.kind is ChangeKind.RENAME:
        return f"{marker} {change.old_path} -> {change.path}"
    line = f"{marker} {change.path}"
    if change.kind in (ChangeKind.MKDIR, ChangeKind.RMDIR):
        line += "/"
    if change.size:
        line += f" ({humanize.naturalsize(change.size)})"
    return line


def main(
    ctx: typer.Context,
    old_snapshot: str = typer.Argument(..., help="Older snapshot path"),
    new_snapshot: str = typer.Argument(..., help="Newer snapshot path"),
    dump_file: Optional[Path] = typer.Option(None, "--dump-file", "-d", help="Read a saved `btrfs receive --dump` output instead of running btrfs"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore cached results"),
    as_json: bool = typer.Option(False, "--json", help="Print one JSON event per line"),
):
    """List changes between two snapshots."""
    app = ctx.obj
    driver = app.driver
    if dump_file is not None:
        driver = StreamDriver(
            lambda old, new: FileLineSource(dump_file),
            cache=app.cache,
            progress_interval=app.settings.progress_interval,
        )

    try:
        events = driver.stream(old_snapshot, new_snapshot, use_cache=not no_cache)
    except (SnapshotNotFoundError, CatalogError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    changes: Dict[Tuple[ChangeKind, str], FileChange] = {}
    for event in events:
        if as_json:
            typer.echo(event.model_dump_json(exclude_none=True))
        if isinstance(event, ProgressEvent):
            logger.debug(event.message)
        elif isinstance(event, ChangeEvent):
            changes[event.data.key] = event.data
        elif isinstance(event, DoneEvent):
            logger.info(event.message)
            if not as_json:
                for change in changes.values():
                    typer.echo(format_change(change))
                summary = event.summary
                typer.echo(
                    f"{summary.added} added, {summary.modified} modified, "
                    f"{summary.deleted} deleted, {summary.renamed} renamed"
                )
        elif isinstance(event, ErrorEvent):
            logger.error(event.message)
            raise typer.Exit(code=1)
