# Copyright (c) Syntropy Systems
"""Questions command - follow each prompt across experiment versions."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from evalboard.cli.common import DATA_DIR_HELP, SERVER_HELP, console, open_assembler
from evalboard.compare import question_history
from evalboard.formatting import format_metric_value, format_prompt
from evalboard.models.results import METRICS


def questions(
    search: Optional[str] = typer.Option(
        None,
        "--search", "-q",
        help="Only show questions containing this text",
    ),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
    server: Optional[str] = typer.Option(None, "--server", "-s", help=SERVER_HELP),
) -> None:
    """Show how every question was answered and scored in each version."""
    assembler = open_assembler(data_dir, server)
    history = question_history(assembler.load_all_experiments())

    if search:
        needle = search.lower()
        history = [h for h in history if needle in h.prompt.lower()]

    if not history:
        console.print("[dim]No questions found[/dim]")
        return

    for question in history:
        table = Table(
            title=escape(format_prompt(question.prompt, 100)),
            title_justify="left",
            show_header=True,
            header_style="bold",
        )
        table.add_column("Version", style="dim")
        table.add_column("Answer")
        for metric in METRICS:
            table.add_column(metric.label, justify="right")

        for answer in question.answers:
            table.add_row(
                f"v{answer.version}",
                escape(format_prompt(answer.response, 80)),
                *[format_metric_value(answer.scores[m.value]) for m in METRICS],
            )
        console.print(table)
