# Copyright (c) Syntropy Systems
"""Build a self-contained static HTML report with the data inlined."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import TypeAdapter

from evalboard import __version__
from evalboard.assembler import ExperimentAssembler, ExperimentIndexError
from evalboard.compare import compare_experiments
from evalboard.formatting import TEMPLATE_FILTERS
from evalboard.loader import BundleSource, DirectorySource, ExperimentLoadError
from evalboard.metrics import MetricsCache
from evalboard.models.base import JSONValue
from evalboard.models.experiment import BundlePayload, ExperimentIndexEntry
from evalboard.models.results import METRICS

if TYPE_CHECKING:
    from evalboard.models.experiment import Experiment, ExperimentComparison

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "dashboard" / "templates"
REPORT_TEMPLATE = "report.html"

_INDEX_ADAPTER = TypeAdapter(list[ExperimentIndexEntry])
_RESULTS_ADAPTER = TypeAdapter(dict[str, JSONValue])


class BundleError(Exception):
    """The static report could not be built."""


def gather_bundle(data_dir: Path) -> BundlePayload:
    """Read the index and every run file into one payload."""
    source = DirectorySource(data_dir)
    try:
        entries = source.load_index()
        results = {entry.name: source.load_raw_results(entry) for entry in entries}
    except ExperimentLoadError as e:
        raise BundleError(str(e)) from e

    descriptions: dict[str, str] = {}
    for entry in entries:
        description = source.load_description(entry)
        if description:
            descriptions[entry.name] = description

    logger.info("Gathered %d experiments from %s", len(entries), data_dir)
    return BundlePayload(experiments=entries, results=results, descriptions=descriptions)


def _script_json(data: bytes) -> str:
    # "</" would end the inline <script> element early
    return data.decode("utf-8").replace("</", "<\\/")


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    env.filters.update(TEMPLATE_FILTERS)
    env.globals["version"] = __version__
    env.globals["metrics"] = METRICS
    return env


def render_bundle(payload: BundlePayload) -> str:
    """Render the static report for a payload."""
    assembler = ExperimentAssembler(BundleSource(payload), cache=MetricsCache())
    try:
        _ = assembler.order()
    except ExperimentIndexError as e:
        raise BundleError(str(e)) from e

    experiments: list[Experiment] = assembler.load_all_experiments()
    comparisons: dict[str, ExperimentComparison] = {
        experiment.name: compare_experiments(experiment, experiment.previous_version)
        for experiment in experiments
        if experiment.previous_version is not None
    }

    template = _environment().get_template(REPORT_TEMPLATE)
    return template.render(
        experiments=experiments,
        comparisons=comparisons,
        generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        experiments_json=_script_json(_INDEX_ADAPTER.dump_json(payload.experiments)),
        results_json=_script_json(_RESULTS_ADAPTER.dump_json(payload.results)),
    )


def write_bundle(data_dir: Path, output_dir: Path) -> Path:
    """Gather, render and write output_dir/index.html."""
    html = render_bundle(gather_bundle(data_dir))
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "index.html"
    _ = output_path.write_text(html, encoding="utf-8")
    logger.info("Wrote static report to %s", output_path)
    return output_path
