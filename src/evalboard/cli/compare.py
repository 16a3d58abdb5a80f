# Copyright (c) Syntropy Systems
"""Compare command - compare two experiment versions question by question."""

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


def compare(
    current: str = typer.Argument(..., help="Experiment to compare"),
    previous: Optional[str] = typer.Argument(
        None, help="Experiment to compare against (default: the previous version)"
    ),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
    server: Optional[str] = typer.Option(None, "--server", "-s", help=SERVER_HELP),
    all_questions: bool = typer.Option(
        False,
        "--all", "-a",
        help="Show the change of every compared question",
    ),
) -> None:
    """Compare two experiment versions side by side.

    Questions are paired by position in the result files.

    Example:
        evalboard compare results_perfect_prompts results_basic_prompts

    """
    assembler = open_assembler(data_dir, server)
    current_experiment = require_experiment(assembler, current)

    if previous is None:
        previous_experiment = current_experiment.previous_version
        if previous_experiment is None:
            console.print(
                f"[red]{current} is the first version; name a version to compare against[/red]"
            )
            raise typer.Exit(1)
    else:
        previous_experiment = require_experiment(assembler, previous)

    comparison = compare_experiments(current_experiment, previous_experiment)
    questions = comparison.questions

    console.print(
        f"\n[bold]Comparing v{current_experiment.version} ({current_experiment.name}) "
        f"with v{previous_experiment.version} ({previous_experiment.name})[/bold]\n"
    )

    metrics_table = Table(show_header=True, header_style="bold")
    metrics_table.add_column("Metric", style="dim")
    metrics_table.add_column(f"v{previous_experiment.version}", justify="right")
    metrics_table.add_column(f"v{current_experiment.version}", justify="right")
    metrics_table.add_column("Change", justify="right")
    for metric in METRICS:
        change = comparison.metric_changes[metric.value]
        metrics_table.add_row(
            metric.label,
            format_metric_value(previous_experiment.metrics.get(metric)),
            format_metric_value(current_experiment.metrics.get(metric)),
            style_change(format_change(change), change),
        )
    console.print(metrics_table)

    if questions.length_mismatch:
        console.print(
            f"[yellow]Question counts differ ({len(current_experiment.results)} vs "
            f"{len(previous_experiment.results)}); compared the first "
            f"{questions.compared_questions} by position[/yellow]"
        )

    if questions.biggest_improvement is None or questions.biggest_decline is None:
        console.print("[dim]No question is scored in both versions[/dim]")
        return

    for label, delta in (
        ("Biggest improvement", questions.biggest_improvement),
        ("Biggest decline", questions.biggest_decline),
    ):
        console.print(
            f"\n[bold]{label}[/bold]: question {delta.question_number} "
            f"{style_change(format_change(delta.avg_change), delta.avg_change)}"
        )
        console.print(f"  [dim]{escape(format_prompt(delta.prompt, 100))}[/dim]")
        for metric in METRICS:
            change = delta.changes[metric.value]
            console.print(
                f"  {metric.label}: {format_metric_value(delta.previous[metric.value])} -> "
                f"{format_metric_value(delta.current[metric.value])} "
                f"{style_change(format_change(change), change)}"
            )

    if all_questions:
        question_table = Table(show_header=True, header_style="bold")
        question_table.add_column("#", style="dim", justify="right")
        question_table.add_column("Prompt")
        for metric in METRICS:
            question_table.add_column(metric.label, justify="right")
        question_table.add_column("Average", justify="right")

        for delta in questions.deltas:
            question_table.add_row(
                str(delta.question_number),
                escape(format_prompt(delta.prompt, 60)),
                *[
                    style_change(format_change(delta.changes[m.value]), delta.changes[m.value])
                    for m in METRICS
                ],
                style_change(format_change(delta.avg_change), delta.avg_change),
            )

        console.print()
        console.print(question_table)
