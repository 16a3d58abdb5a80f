# Copyright (c) Syntropy Systems
"""Dashboard command - start the web UI."""

import os
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from evalboard.cli.common import DATA_DIR_HELP, console
from evalboard.config import DATA_DIR_ENV, load_config, require_data_dir


def dashboard(
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Port to run the dashboard on (default from config)"
    ),
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
) -> None:
    """Start the evalboard dashboard web UI."""
    config = load_config()
    try:
        resolved = require_data_dir(config, data_dir)
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    # The app is imported by uvicorn and resolves its data dir from the environment
    os.environ[DATA_DIR_ENV] = str(resolved.resolve())
    port = port if port is not None else config.dashboard_port

    console.print("[bold]evalboard dashboard[/bold]")
    console.print(f"  Data: [cyan]{resolved}[/cyan]")
    console.print(f"  Dashboard: [cyan]http://{host}:{port}[/cyan]")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "evalboard.dashboard:app",
        host=host,
        port=port,
        log_level="warning",
    )
