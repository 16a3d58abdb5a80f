# Copyright (c) Syntropy Systems
"""evalboard list and show commands."""
from __future__ import annotations

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
    require_experiment,
    style_change,
)
from evalboard.compare import compare_experiments
from evalboard.formatting import format_change, format_metric_value, format_prompt
from evalboard.models.results import METRICS


def list_experiments(
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
    server: Optional[str] = typer.Option(None, "--server", "-s", help=SERVER_HELP),
    search: Optional[str] = typer.Option(
        None,
        "--search", "-q",
        help="Only show experiments whose name or description contains this",
    ),
) -> None:
    """List experiments with their averages and change vs the previous version."""
    assembler = open_assembler(data_dir, server)
    experiments = assembler.load_all_experiments()

    if search:
        needle = search.lower()
        experiments = [
            e for e in experiments
            if needle in e.name.lower() or needle in e.description.lower()
        ]

    if not experiments:
        console.print("[dim]No experiments found[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Version", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for metric in METRICS:
        table.add_column(metric.label, justify="right")
    table.add_column("Questions", justify="right")
    table.add_column("Valid")

    for experiment in experiments:
        previous = experiment.previous_version
        changes = (
            compare_experiments(experiment, previous).metric_changes if previous else {}
        )
        cells: list[str] = []
        for metric in METRICS:
            value = format_metric_value(experiment.metrics.get(metric))
            change = changes.get(metric.value)
            if change is not None:
                value += " " + style_change(format_change(change), change)
            cells.append(value)

        table.add_row(
            f"v{experiment.version}",
            experiment.name,
            escape(experiment.description),
            *cells,
            str(experiment.stats.total_questions),
            "[green]yes[/green]" if experiment.validation.is_valid else "[red]no[/red]",
        )

    console.print(table)


def show(
    name: str = typer.Argument(..., help="Experiment name"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
    server: Optional[str] = typer.Option(None, "--server", "-s", help=SERVER_HELP),
    questions: bool = typer.Option(
        False,
        "--questions",
        help="List every question with its scores",
    ),
    search: Optional[str] = typer.Option(
        None,
        "--search", "-q",
        help="Only list questions whose prompt or response contains this",
    ),
) -> None:
    """Show one experiment's averages, question counts and scores."""
    assembler = open_assembler(data_dir, server)
    experiment = require_experiment(assembler, name)

    console.print(f"\n[bold]{escape(experiment.description)}[/bold]")
    console.print(f"  Name:    {experiment.name}")
    console.print(f"  Version: {experiment.version}")
    if experiment.data_path:
        console.print(f"  Data:    [dim]{experiment.data_path}[/dim]")

    previous = experiment.previous_version
    comparison = compare_experiments(experiment, previous) if previous else None

    metrics_table = Table(show_header=True, header_style="bold")
    metrics_table.add_column("Metric", style="dim")
    metrics_table.add_column("Average", justify="right")
    metrics_table.add_column("Scored", justify="right")
    if comparison:
        metrics_table.add_column(f"vs v{comparison.previous_version}", justify="right")

    stats = experiment.stats
    for metric in METRICS:
        row = [
            metric.label,
            format_metric_value(experiment.metrics.get(metric)),
            f"{stats.scored[metric.value]}/{stats.total_questions}",
        ]
        if comparison:
            change = comparison.metric_changes[metric.value]
            row.append(style_change(format_change(change), change))
        metrics_table.add_row(*row)

    console.print()
    console.print(metrics_table)
    console.print(
        f"[dim]{stats.fully_scored} fully scored, {stats.valid_questions} valid, "
        f"{stats.high_faithfulness} with high faithfulness[/dim]"
    )

    if not experiment.validation.is_valid:
        console.print(
            f"[yellow]{len(experiment.validation.errors)} validation errors[/yellow] "
            f"(run [cyan]evalboard validate {experiment.name}[/cyan])"
        )

    if comparison:
        for label, delta in (
            ("Biggest improvement", comparison.questions.biggest_improvement),
            ("Biggest decline", comparison.questions.biggest_decline),
        ):
            if delta is not None:
                console.print(
                    f"{label}: question {delta.question_number} "
                    f"{style_change(format_change(delta.avg_change), delta.avg_change)} "
                    f"[dim]{escape(format_prompt(delta.prompt, 80))}[/dim]"
                )

    if questions or search:
        numbered = list(enumerate(experiment.results, start=1))
        if search:
            numbered = [(n, r) for n, r in numbered if r.matches(search)]

        question_table = Table(show_header=True, header_style="bold")
        question_table.add_column("#", style="dim", justify="right")
        question_table.add_column("Prompt")
        for metric in METRICS:
            question_table.add_column(metric.label, justify="right")

        for number, result in numbered:
            question_table.add_row(
                str(number),
                escape(format_prompt(result.prompt, 80)),
                *[format_metric_value(result.raw_score(metric)) for metric in METRICS],
            )

        console.print()
        if numbered:
            console.print(question_table)
        else:
            console.print("[dim]No questions match[/dim]")
