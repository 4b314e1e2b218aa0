"""snapserve clear command - remove persisted snapshots."""

from pathlib import Path

import click
from rich.console import Console

from snapserve.config.constants import STATIC_DIR
from snapserve.config.loader import load_config
from snapserve.storage.local import LocalStorage


def clear_snapshots(output_dir: Path, *, yes: bool = False) -> int:
    """Delete every snapshot under <output_dir>/static.

    Returns the number of files removed (0 when cancelled or nothing to clear).
    """
    console = Console(stderr=True)
    storage = LocalStorage(output_dir)
    snapshots = storage.list_files(STATIC_DIR)

    if not snapshots:
        console.print("[yellow]Nothing to clear[/yellow] - no snapshots found")
        return 0

    console.print(f"\n[bold]{len(snapshots)} snapshot(s) will be deleted:[/bold]\n")
    for snapshot in snapshots:
        console.print(f"  [cyan]•[/cyan] {snapshot}")
    console.print()

    if not yes and not click.confirm("Delete these snapshots?", default=False):
        console.print("[dim]Cancelled[/dim]")
        return 0

    for snapshot in snapshots:
        storage.remove(snapshot)

    console.print(f"[green]✓[/green] Removed {len(snapshots)} snapshot(s)")
    return len(snapshots)


@click.command()
@click.argument("path", default=None, required=False, type=click.Path(exists=True, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
def clear_command(path: Path | None, yes: bool) -> None:
    """Remove persisted static snapshots from the output directory.

    Snapshots are never invalidated automatically; run this after a
    redeploy that changes static pages.
    """
    config = load_config(path)
    clear_snapshots(config.paths.output_dir, yes=yes)
