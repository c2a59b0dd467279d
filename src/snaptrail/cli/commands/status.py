# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/cli/commands/status.py

"""Status command for querying timeline index progress."""

import typer
from loguru import logger

from snaptrail.errors import CatalogError


def main(
    ctx: typer.Context,
    subvolume: str = typer.Argument(..., help="Snapshot root, e.g. /@snapshots"),
):
    """Show timeline index progress."""
    try:
        status = ctx.obj.indexer.get_index_status(subvolume)
    except CatalogError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    if not status.exists:
        typer.echo(f"No index for {subvolume} ({status.total} snapshots available)")
    elif status.complete:
        typer.echo(f"Index complete: {status.current}/{status.total} snapshots")
    else:
        typer.echo(f"Index building: {status.current}/{status.total} snapshots")
