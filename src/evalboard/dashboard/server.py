# Copyright (c) Syntropy Systems
"""evalboard dashboard - FastAPI server with Jinja2 templates."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Protocol, cast

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

import evalboard
from evalboard.assembler import ExperimentAssembler, ExperimentIndexError
from evalboard.compare import compare_experiments, question_history
from evalboard.config import EvalboardConfig, load_config, require_data_dir
from evalboard.formatting import TEMPLATE_FILTERS
from evalboard.loader import DirectorySource, ExperimentLoadError, ExperimentSource
from evalboard.metrics import MetricsCache
from evalboard.models.api import (
    ErrorResponse,
    ExperimentSummaryResponse,
    HealthResponse,
)
from evalboard.models.results import METRICS

if TYPE_CHECKING:
    from evalboard.models.experiment import (
        Experiment,
        ExperimentComparison,
        ExperimentIndexEntry,
    )

# Setup paths
DASHBOARD_DIR = Path(__file__).parent
TEMPLATES_DIR = DASHBOARD_DIR / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


class _TemplateEnv(Protocol):
    filters: dict[str, object]
    globals: dict[str, object]


# Add custom filters to Jinja2
templates_env = cast("_TemplateEnv", templates.env)
templates_env.filters.update(TEMPLATE_FILTERS)

# Add global template variables
templates_env.globals["version"] = evalboard.__version__
templates_env.globals["metrics"] = METRICS


def get_assembler(request: Request) -> ExperimentAssembler:
    """Build a fresh assembler for this request."""
    state = request.app.state
    source = cast("ExperimentSource | None", state.source)
    config = cast("EvalboardConfig", state.config)
    if source is None:
        try:
            data_dir = require_data_dir(config, cast("Path | None", state.data_dir))
        except RuntimeError as e:
            raise HTTPException(status_code=503, detail=str(e)) from e
        source = DirectorySource(data_dir)
    return ExperimentAssembler(
        source,
        cache=cast("MetricsCache", state.cache),
        high_faithfulness_threshold=config.high_faithfulness_threshold,
    )


AssemblerDep = Annotated[ExperimentAssembler, Depends(get_assembler)]


def _index_or_503(assembler: ExperimentAssembler) -> list[ExperimentIndexEntry]:
    try:
        return assembler.index()
    except (ExperimentLoadError, ExperimentIndexError) as e:
        raise HTTPException(status_code=503, detail=str(e)) from e


def _render_error(request: Request, message: str, status_code: int) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "error.html",
        {"error": message},
        status_code=status_code,
    )


def _matches(experiment: Experiment, term: str) -> bool:
    needle = term.lower()
    return needle in experiment.name.lower() or needle in experiment.description.lower()


def create_app(
    source: ExperimentSource | None = None,
    data_dir: Path | None = None,
    config: EvalboardConfig | None = None,
    cache: MetricsCache | None = None,
) -> FastAPI:
    """
    Create the dashboard application.

    Args:
        source: Data source to serve; defaults to a directory source
        data_dir: Results directory used when no source is given
        config: Configuration; loaded from .evalboard/config.yaml if omitted
        cache: Metrics cache shared across requests

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = load_config()

    app = FastAPI(title="evalboard dashboard", docs_url=None, redoc_url=None)
    app.state.source = source
    app.state.data_dir = data_dir
    app.state.config = config
    app.state.cache = cache if cache is not None else MetricsCache(ttl=config.cache_ttl_seconds)

    # --- Pages ---

    @app.get("/", response_class=HTMLResponse)
    def experiment_list(
        request: Request,
        assembler: AssemblerDep,
        q: str | None = None,
    ) -> HTMLResponse:
        """Render the experiment list."""
        _ = _index_or_503(assembler)
        experiments = assembler.load_all_experiments()
        if q:
            experiments = [e for e in experiments if _matches(e, q)]
        comparisons = {
            e.name: compare_experiments(e, e.previous_version)
            for e in experiments
            if e.previous_version is not None
        }
        return templates.TemplateResponse(
            request,
            "experiments.html",
            {
                "experiments": experiments,
                "comparisons": comparisons,
                "search": q or "",
            },
        )

    @app.get("/experiments/{name}", response_class=HTMLResponse)
    def experiment_detail(
        request: Request,
        name: str,
        assembler: AssemblerDep,
        q: str | None = None,
    ) -> HTMLResponse:
        """Render one experiment with its results."""
        experiment = assembler.load_experiment(name)
        if experiment is None:
            return _render_error(request, f"Failed to load experiment {name}", 404)

        comparison: ExperimentComparison | None = None
        if experiment.previous_version is not None:
            comparison = compare_experiments(experiment, experiment.previous_version)

        numbered = list(enumerate(experiment.results, start=1))
        if q:
            numbered = [(n, r) for n, r in numbered if r.matches(q)]

        return templates.TemplateResponse(
            request,
            "experiment_detail.html",
            {
                "experiment": experiment,
                "comparison": comparison,
                "results": numbered,
                "search": q or "",
                "versions": _index_or_503(assembler),
            },
        )

    @app.get("/experiments/{name}/validation", response_class=HTMLResponse)
    def experiment_validation(
        request: Request,
        name: str,
        assembler: AssemblerDep,
    ) -> HTMLResponse:
        """Render the validation report of one experiment."""
        experiment = assembler.load_experiment(name)
        if experiment is None:
            return _render_error(request, f"Failed to load experiment {name}", 404)
        return templates.TemplateResponse(
            request,
            "validation.html",
            {"experiment": experiment},
        )

    @app.get("/compare", response_class=HTMLResponse)
    def compare_versions(
        request: Request,
        assembler: AssemblerDep,
        current: str,
        previous: str | None = None,
    ) -> HTMLResponse:
        """Render a side-by-side comparison of two versions."""
        current_experiment = assembler.load_experiment(current)
        if current_experiment is None:
            return _render_error(request, f"Failed to load experiment {current}", 404)

        if previous is None:
            previous_experiment = current_experiment.previous_version
        else:
            previous_experiment = assembler.load_experiment(previous)
        if previous_experiment is None:
            return _render_error(request, "No version to compare against", 404)

        return templates.TemplateResponse(
            request,
            "compare.html",
            {
                "current": current_experiment,
                "previous": previous_experiment,
                "comparison": compare_experiments(current_experiment, previous_experiment),
                "versions": _index_or_503(assembler),
            },
        )

    @app.get("/questions", response_class=HTMLResponse)
    def questions(
        request: Request,
        assembler: AssemblerDep,
        q: str | None = None,
    ) -> HTMLResponse:
        """Render every question with its answers across versions."""
        _ = _index_or_503(assembler)
        history = question_history(assembler.load_all_experiments())
        if q:
            needle = q.lower()
            history = [h for h in history if needle in h.prompt.lower()]
        return templates.TemplateResponse(
            request,
            "questions.html",
            {"questions": history, "search": q or ""},
        )

    # --- JSON API ---

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Health check."""
        return HealthResponse(status="ok")

    @app.get("/api/experiments")
    def list_experiments(assembler: AssemblerDep) -> JSONResponse:
        """Return the experiment index in version order."""
        entries = _index_or_503(assembler)
        payload = []
        for entry in entries:
            description = assembler.source.load_description(entry)
            update = {"description": description} if description else {}
            payload.append(entry.model_copy(update=update).model_dump())
        return JSONResponse(payload)

    @app.get(
        "/api/experiments/{name}",
        responses={404: {"model": ErrorResponse}},
    )
    def raw_experiment(name: str, assembler: AssemblerDep) -> JSONResponse:
        """Return an experiment's raw run data."""
        entry = next((e for e in _index_or_503(assembler) if e.name == name), None)
        if entry is None:
            raise HTTPException(status_code=404, detail="Experiment not found")
        try:
            data = assembler.source.load_raw_results(entry)
        except ExperimentLoadError as e:
            raise HTTPException(status_code=404, detail="Experiment not found") from e
        return JSONResponse(data)

    @app.get(
        "/api/experiments/{name}/summary",
        response_model=ExperimentSummaryResponse,
        responses={404: {"model": ErrorResponse}},
    )
    def experiment_summary(name: str, assembler: AssemblerDep) -> ExperimentSummaryResponse:
        """Return an experiment's averages and validation summary."""
        experiment = assembler.load_experiment(name)
        if experiment is None:
            raise HTTPException(status_code=404, detail="Experiment not found")
        previous = experiment.previous_version
        return ExperimentSummaryResponse(
            name=experiment.name,
            description=experiment.description,
            version=experiment.version,
            previous_version=previous.name if previous is not None else None,
            metrics=experiment.metrics,
            individual_scores=experiment.individual_scores,
            validation=experiment.validation.summary,
            is_valid=experiment.validation.is_valid,
            errors=experiment.validation.errors,
        )

    return app


app = create_app()
