"""snapserve up command - start the server."""

import asyncio
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console

from snapserve.config.loader import load_config
from snapserve.config.models import ServerConfig, SnapserveConfig
from snapserve.core.errors import SnapserveError


def _print_banner(config: SnapserveConfig, console: Console | None = None) -> None:
    """Print startup banner with endpoints using Rich."""
    console = console or Console(stderr=True)
    banner_width = 64
    rule_line = "─" * banner_width
    base_url = f"http://{config.server.host}:{config.server.port}"

    console.print()
    console.print(rule_line, style="dim cyan", highlight=False)
    console.print(
        f"Snapserve · {config.mode}".center(banner_width), style="bold cyan", highlight=False
    )
    console.print(rule_line, style="dim cyan", highlight=False)
    console.print()
    console.print(f"  Pages:           {base_url}/", style="green", highlight=False)
    console.print(f"  Health Check:    {base_url}/-/health", highlight=False)
    console.print(f"  Status:          {base_url}/-/status", highlight=False)
    console.print(f"  Output:          {config.paths.output_dir}", style="dim", highlight=False)
    if config.is_dev:
        console.print(f"  Watching:        {config.paths.source_dir}", style="dim", highlight=False)
    console.print()


@click.command()
@click.argument("path", default=None, required=False, type=click.Path(exists=True, path_type=Path))
@click.option("--dev/--prod", "dev", default=None, help="Override the configured mode")
@click.option("--host", type=str, help="Override bind address")
@click.option("--port", "-p", type=int, help="Override server port")
def up_command(path: Path | None, dev: bool | None, host: str | None, port: int | None) -> None:
    """Start the server in the foreground.

    PATH is the project root holding snapserve.yaml and the output
    directory. Defaults to the current directory.
    """
    from snapserve.core.logging import configure_logging
    from snapserve.server.lifecycle import run_server

    overrides: dict[str, Any] = {}
    if dev is not None:
        overrides["mode"] = "development" if dev else "production"
    server_overrides = {k: v for k, v in (("host", host), ("port", port)) if v is not None}

    try:
        config = load_config(path, **overrides)
        if server_overrides:
            config.server = ServerConfig.model_validate(
                {**config.server.model_dump(), **server_overrides}
            )
    except SnapserveError as e:
        raise click.ClickException(str(e)) from e
    except ValidationError as e:
        raise click.ClickException(e.errors()[0]["msg"]) from e

    configure_logging(config=config.logging)
    _print_banner(config)

    try:
        asyncio.run(run_server(config))
    except SnapserveError as e:
        raise click.ClickException(str(e)) from e
