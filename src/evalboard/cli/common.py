# Copyright (c) Syntropy Systems
"""Helpers shared by evalboard commands."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.logging import RichHandler

from evalboard.assembler import ExperimentAssembler, ExperimentIndexError
from evalboard.config import load_config, require_data_dir
from evalboard.loader import DirectorySource, ExperimentLoadError, RemoteSource
from evalboard.metrics import MetricsCache

if TYPE_CHECKING:
    from pathlib import Path

    from evalboard.loader import ExperimentSource
    from evalboard.models.experiment import Experiment

console = Console()

DATA_DIR_HELP = "Directory with experiments.json (defaults to config or $EVALBOARD_DATA_DIR)"
SERVER_HELP = "Read from a running evalboard dashboard instead (e.g., http://localhost:8265)"


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def open_assembler(
    data_dir: Path | None = None,
    server: str | None = None,
) -> ExperimentAssembler:
    """Build an assembler over a directory or a remote dashboard.

    Exits with status 1 when no data can be located.
    """
    config = load_config()
    source: ExperimentSource
    if server:
        source = RemoteSource(server)
    else:
        try:
            source = DirectorySource(require_data_dir(config, data_dir))
        except RuntimeError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

    assembler = ExperimentAssembler(
        source,
        cache=MetricsCache(ttl=config.cache_ttl_seconds),
        high_faithfulness_threshold=config.high_faithfulness_threshold,
    )
    try:
        _ = assembler.order()
    except (ExperimentLoadError, ExperimentIndexError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    return assembler


def require_experiment(assembler: ExperimentAssembler, name: str) -> Experiment:
    """Load an experiment or exit with status 1."""
    experiment = assembler.load_experiment(name)
    if experiment is None:
        if assembler.order().version_of(name) is None:
            console.print(f"[red]Experiment not found: {name}[/red]")
        else:
            console.print(f"[red]Failed to load experiment {name}[/red]")
        raise typer.Exit(1)
    return experiment


def style_change(text: str, change: float | None) -> str:
    """Wrap a formatted change in rich markup."""
    if change is None or change == 0:
        return f"[dim]{text}[/dim]"
    color = "green" if change > 0 else "red"
    return f"[{color}]{text}[/{color}]"
