# Author: PB
# Maintainer: PB
# Original date: 2026.10.17
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/snaptrail/cli/commands/history.py

"""History command for one file's timeline."""

import typer
import humanize


def main(
    ctx: typer.Context,
    subvolume: str = typer.Argument(..., help="Snapshot root, e.g. /@snapshots"),
    file: str = typer.Argument(..., help="Snapshot-relative file path, current or former"),
    as_json: bool = typer.Option(False, "--json", help="Print the timeline as JSON"),
):
    """Show the timeline of one file."""
    timeline = ctx.obj.indexer.get_file_history(subvolume, file)
    if timeline is None:
        typer.echo(f"No history for '{file}' in {subvolume}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(timeline.model_dump_json(indent=2))
        return

    typer.echo(f"{timeline.current_path} [{timeline.status.value}]")
    if len(timeline.aliases) > 1:
        typer.echo(f"  also known as: {', '.join(timeline.aliases[1:])}")
    for entry in timeline.history:
        line = f"  {entry.snapshot_created_at:%Y-%m-%d %H:%M:%S}  {entry.change_type.value:<8}  {entry.path}"
        if entry.previous_path:
            line += f" (from {entry.previous_path})"
        if entry.size:
            line += f" {humanize.naturalsize(entry.size)}"
        typer.echo(line)
