# Copyright (c) Syntropy Systems
"""Bundle command - write a static report with the data inlined."""

from pathlib import Path
from typing import Optional

import typer

from evalboard.bundle import BundleError, write_bundle
from evalboard.cli.common import DATA_DIR_HELP, console
from evalboard.config import load_config, require_data_dir


def bundle(
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
    output_dir: Path = typer.Option(
        Path("dist"),
        "--output-dir", "-o",
        help="Directory to write index.html into",
    ),
) -> None:
    """Build a single self-contained HTML report for offline viewing.

    Example:
        evalboard bundle --data-dir mlflow_results --output-dir dist

    """
    try:
        resolved = require_data_dir(load_config(), data_dir)
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        output_path = write_bundle(resolved, output_dir)
    except BundleError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(f"[green]Wrote report to {output_path}[/green]")
