"""CLI entry point for the File Opener client.

Provides commands:
  - upload: Send one file to the local agent and watch it open
  - open: Re-open a file the agent already stored
  - health: Check that the agent is running (optionally wait for it)
  - config show: Print the resolved upload configuration
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import Annotated, Optional

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fileopener.config import UploadConfig, load_upload_config
from fileopener.models import Failed, NetworkError, Succeeded, UploadState
from fileopener.selection import SelectionHolder
from fileopener.upload.client import AgentClient
from fileopener.upload.controller import UploadController, interpret_response
from fileopener.upload.progress import UploadProgressView

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="File Opener - send a file to your local agent and open it there",
    rich_markup_mode="rich",
)
console = Console()

config_app = typer.Typer(help="Inspect configuration")
app.add_typer(config_app, name="config")


def _build_client(config: UploadConfig) -> AgentClient:
    return AgentClient(config)


def _resolve_config(config_path: Path | None, **overrides: str | None) -> UploadConfig:
    """Load the config file and apply the command-line overrides that were given."""
    try:
        config = load_upload_config(config_path)
        given = {k: v for k, v in overrides.items() if v}
        if given:
            config = dataclasses.replace(config, **given)
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=1)
    return config


@app.callback()
def app_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log state transitions and HTTP traffic"),
    ] = False,
) -> None:
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def upload(
    file: Annotated[
        Optional[Path],
        typer.Argument(help="File to upload and open"),
    ] = None,
    endpoint: Annotated[
        Optional[str],
        typer.Option("--endpoint", "-e", help="Agent upload URL"),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to upload_config.json"),
    ] = None,
) -> None:
    """Upload FILE to the agent with a progress bar and report the outcome."""
    config = _resolve_config(config_path, endpoint=endpoint)
    selection = SelectionHolder()

    async def _run_upload() -> UploadState:
        async with _build_client(config) as client:
            controller = UploadController(client)
            selection.subscribe(controller.prepare)

            if file is not None:
                try:
                    selected = selection.select(file)
                except OSError as e:
                    console.print(f"[red]Cannot select file:[/red] {e}")
                    raise typer.Exit(code=1)
                console.print(
                    Panel(
                        f"[bold]{selected.name}[/bold]\n{selected.size_mb:.2f} MB",
                        title="Selected File",
                    )
                )

            current = selection.current()
            if current is None:
                return await controller.start(None)

            with UploadProgressView(current.name, console=console) as view:
                controller.subscribe(view.update)
                return await controller.start(current)

    outcome = asyncio.run(_run_upload())

    if isinstance(outcome, Succeeded):
        console.print(
            Panel(
                f"File uploaded successfully!\nPath: {outcome.file_path}",
                title="Upload Complete",
                border_style="green",
            )
        )
        return

    message = outcome.cause.message if isinstance(outcome, Failed) else str(outcome)
    console.print(f"[red]Error:[/red] {message}")
    console.print(
        f"Make sure the agent is running on [bold]{config.endpoint}[/bold]"
    )
    raise typer.Exit(code=1)


@app.command()
def health(
    url: Annotated[
        Optional[str],
        typer.Option("--url", "-u", help="Agent health URL"),
    ] = None,
    wait: Annotated[
        float,
        typer.Option("--wait", "-w", help="Keep polling up to this many seconds"),
    ] = 0.0,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to upload_config.json"),
    ] = None,
) -> None:
    """Check whether the agent answers on its health endpoint."""
    config = _resolve_config(config_path, health_endpoint=url)

    async def _probe() -> dict:
        async with _build_client(config) as client:
            if wait > 0:
                return await client.wait_until_healthy(wait)
            return await client.check_health()

    try:
        document = asyncio.run(_probe())
    except httpx.HTTPError as e:
        console.print(
            f"[red]Agent not reachable at {config.health_endpoint}:[/red] {e}"
        )
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[red]Agent sent an unreadable health document:[/red] {e}")
        raise typer.Exit(code=1)

    status = document.get("status", "unknown")
    timestamp = document.get("timestamp", "")
    console.print(f"[green]Agent {status}[/green] {timestamp}".rstrip())


@app.command("open")
def open_cmd(
    name: Annotated[
        str,
        typer.Argument(help="Stored file name, or the path an earlier upload reported"),
    ],
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to upload_config.json"),
    ] = None,
) -> None:
    """Open a file the agent already holds, without uploading it again."""
    config = _resolve_config(config_path)
    # The agent only knows the base name inside its upload directory
    filename = Path(name).name

    async def _open() -> httpx.Response:
        async with _build_client(config) as client:
            return await client.open_uploaded(filename)

    try:
        response = asyncio.run(_open())
    except httpx.TransportError as e:
        console.print(f"[red]Error:[/red] {NetworkError(str(e)).message}")
        console.print(
            f"Make sure the agent is running on [bold]{config.open_endpoint}[/bold]"
        )
        raise typer.Exit(code=1)

    outcome = interpret_response(response.status_code, response.content)
    if isinstance(outcome, Succeeded):
        console.print(
            Panel(
                f"File opened\nPath: {outcome.file_path}",
                title="Opened",
                border_style="green",
            )
        )
        return

    message = outcome.cause.message if isinstance(outcome, Failed) else str(outcome)
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


@config_app.command("show")
def config_show(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to upload_config.json"),
    ] = None,
) -> None:
    """Print the resolved configuration."""
    config = _resolve_config(config_path)

    table = Table(title="Upload Configuration")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in config.to_dict().items():
        table.add_row(key, "none" if value is None else str(value))
    console.print(table)
