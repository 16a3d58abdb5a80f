# Copyright (c) Syntropy Systems
"""Validate command - check result files for missing and invalid data."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from evalboard.cli.common import (
    DATA_DIR_HELP,
    SERVER_HELP,
    console,
    open_assembler,
)


def validate(
    names: Optional[list[str]] = typer.Argument(
        None, help="Experiments to validate (default: all)"
    ),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
    server: Optional[str] = typer.Option(None, "--server", "-s", help=SERVER_HELP),
    show_errors: bool = typer.Option(
        True,
        "--errors/--no-errors",
        help="List individual validation errors",
    ),
) -> None:
    """Validate experiment result files.

    Exits with status 1 if any experiment fails to load or has invalid records.

    Example:
        evalboard validate results_basic_prompts

    """
    assembler = open_assembler(data_dir, server)
    if not names:
        names = assembler.order().names()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Experiment", style="cyan")
    table.add_column("Results", justify="right")
    table.add_column("Valid", justify="right")
    table.add_column("Missing", justify="right")
    table.add_column("Invalid", justify="right")
    table.add_column("Status")

    failed = False
    reports = []
    for name in names:
        experiment = assembler.load_experiment(name)
        if experiment is None:
            table.add_row(name, "-", "-", "-", "-", "[red]load failed[/red]")
            failed = True
            continue

        report = experiment.validation
        summary = report.summary
        table.add_row(
            name,
            str(summary.total_results),
            str(len(report.valid_results)),
            str(summary.results_with_missing_data),
            str(summary.results_with_invalid_data),
            "[green]valid[/green]" if report.is_valid else "[red]invalid[/red]",
        )
        if not report.is_valid:
            failed = True
        reports.append((name, report))

    console.print(table)

    if show_errors:
        for name, report in reports:
            if report.errors:
                console.print(f"\n[bold]{name}[/bold]")
                for error in report.errors:
                    console.print(f"  [red]-[/red] {escape(error)}")

    if failed:
        raise typer.Exit(1)
