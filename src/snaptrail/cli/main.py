# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/cli/main.py

"""Main CLI entry point for snaptrail."""

import typer
from typing import Optional
from pathlib import Path

from snaptrail.cli.commands.compare import main as compare_command
from snaptrail.cli.commands.history import main as history_command
from snaptrail.cli.commands.index import main as index_command
from snaptrail.cli.commands.index import rebuild as rebuild_command
from snaptrail.cli.commands.status import main as status_command
from snaptrail.config import AppContext, Settings
from snaptrail.logging.setup import setup_logging

app = typer.Typer(
    name="snaptrail",
    help="Change extraction and per-file timelines for btrfs snapshot chains",
    no_args_is_help=True,
)

app.command("compare", help="List changes between two snapshots")(compare_command)
app.command("index", help="Build or resume the file timeline index")(index_command)
app.command("rebuild", help="Rebuild the file timeline index from scratch")(rebuild_command)
app.command("history", help="Show the timeline of one file")(history_command)
app.command("status", help="Show timeline index progress")(status_command)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to JSON settings file"),
    db: Optional[str] = typer.Option(None, "--db", help="SQLAlchemy database URL"),
    btrfs_root: Optional[Path] = typer.Option(None, "--btrfs-root", help="Mounted btrfs top-level directory"),
):
    """snaptrail: btrfs snapshot change timelines."""
    settings = Settings.from_env(config, database_url=db, btrfs_root=btrfs_root)
    setup_logging(verbose=verbose, log_file=settings.log_file)
    if ctx.obj is None:
        ctx.obj = AppContext(settings)
    ctx.call_on_close(ctx.obj.close)


if __name__ == "__main__":
    app()
