# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/cli/commands/index.py

"""Index and rebuild commands for file timelines."""

import typer
from loguru import logger

from snaptrail.errors import CatalogError, IndexingError


def _echo_progress(current: int, total: int):
    typer.echo(f"Indexed {current}/{total} snapshots ({round(current / total * 100)}%)")


def main(
    ctx: typer.Context,
    subvolume: str = typer.Argument(..., help="Snapshot root, e.g. /@snapshots"),
    force: bool = typer.Option(False, "--force", help="Drop the existing index for this root and start over"),
):
    """Build or resume the file timeline index."""
    indexer = ctx.obj.indexer
    try:
        processed = indexer.build_index(subvolume, force=force, on_progress=_echo_progress)
    except (IndexingError, CatalogError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    if not processed:
        typer.echo(f"Index for {subvolume} is up to date")


def rebuild(
    ctx: typer.Context,
    subvolume: str = typer.Argument(..., help="Snapshot root, e.g. /@snapshots"),
):
    """Rebuild the file timeline index from scratch."""
    indexer = ctx.obj.indexer
    try:
        indexer.rebuild_index(subvolume, on_progress=_echo_progress)
    except (IndexingError, CatalogError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    typer.echo("Index rebuilt successfully")
