# Copyright (c) Syntropy Systems
"""Main CLI entry point for evalboard."""

import typer

from evalboard.cli.bundle_cmd import bundle
from evalboard.cli.common import setup_logging
from evalboard.cli.compare import compare
from evalboard.cli.dashboard import dashboard
from evalboard.cli.experiments import list_experiments, show
from evalboard.cli.questions import questions
from evalboard.cli.validate import validate

app = typer.Typer(
    name="evalboard",
    help="Browse, validate and compare LLM evaluation runs.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Browse, validate and compare LLM evaluation runs."""
    setup_logging(verbose)


# Register commands
_ = app.command(name="list")(list_experiments)
_ = app.command()(show)
_ = app.command()(validate)
_ = app.command()(compare)
_ = app.command()(questions)
_ = app.command()(bundle)
_ = app.command()(dashboard)


if __name__ == "__main__":
    app()
