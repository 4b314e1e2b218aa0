"""Snapserve CLI - snapserve command."""

import click

from snapserve.cli.clear import clear_command
from snapserve.cli.up import up_command
from snapserve.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="snapserve")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Snapserve - streaming server-side renderer with static snapshots."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(up_command, name="up")
cli.add_command(clear_command, name="clear")


if __name__ == "__main__":
    cli()
