# Copyright (c) Syntropy Systems
"""Pydantic models for assembled experiments, validation and comparisons."""

from __future__ import annotations

from pydantic import Field

from .base import EvalboardBaseModel, FrozenModel, JSONValue
from .results import Metric, ResultRecord


class Metrics(FrozenModel):
    """Per-metric averages over scored records."""

    correctness: float = 0.0
    correctness_weighted: float = 0.0
    faithfulness: float = 0.0

    def get(self, metric: Metric) -> float:
        """Return the average for a metric."""
        return getattr(self, metric.value)


class IndividualScores(FrozenModel):
    """Raw per-record scores, unscored markers included."""

    correctness: list[JSONValue] = Field(default_factory=list)
    correctness_weighted: list[JSONValue] = Field(default_factory=list)
    faithfulness: list[JSONValue] = Field(default_factory=list)

    def get(self, metric: Metric) -> list[JSONValue]:
        """Return the raw scores for a metric."""
        return getattr(self, metric.value)


class MetricsResult(FrozenModel):
    """Output of the metrics aggregator."""

    metrics: Metrics
    individual_scores: IndividualScores


class ExperimentStats(FrozenModel):
    """Question counts shown next to an experiment's averages."""

    total_questions: int
    valid_questions: int
    scored: dict[str, int]
    fully_scored: int
    high_faithfulness: int


class ValidationSummary(EvalboardBaseModel):
    """Counters collected while validating a batch of records."""

    total_results: int = 0
    results_with_missing_data: int = 0
    results_with_invalid_data: int = 0


class ValidationCheck(EvalboardBaseModel):
    """A single named structural check shown on the validation page."""

    description: str
    passed: bool
    details: str | None = None


class ValidationReport(EvalboardBaseModel):
    """Result of validating a batch of records."""

    is_valid: bool = True
    valid_results: list[ResultRecord] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    summary: ValidationSummary = Field(default_factory=ValidationSummary)
    checks: list[ValidationCheck] = Field(default_factory=list)


class ExperimentIndexEntry(EvalboardBaseModel):
    """Entry of experiments.json."""

    name: str
    description: str = ""
    version: int
    path: str = ""


class Experiment(FrozenModel):
    """One evaluated experiment version with a link to the version before it."""

    name: str
    description: str
    version: int
    results: list[ResultRecord]
    metrics: Metrics
    individual_scores: IndividualScores
    validation: ValidationReport
    stats: ExperimentStats
    data_path: str | None = None
    previous_version: Experiment | None = None

    def chain(self) -> list[Experiment]:
        """Return this experiment followed by its ancestors, newest first."""
        chain: list[Experiment] = []
        current: Experiment | None = self
        while current is not None:
            chain.append(current)
            current = current.previous_version
        return chain


class QuestionDelta(FrozenModel):
    """Change of one question's scores between two versions."""

    question_number: int
    prompt: JSONValue = None
    changes: dict[str, float | None]
    absolute: dict[str, float | None]
    previous: dict[str, JSONValue]
    current: dict[str, JSONValue]
    avg_change: float


class Comparison(FrozenModel):
    """Question-level comparison between two versions."""

    biggest_improvement: QuestionDelta | None = None
    biggest_decline: QuestionDelta | None = None
    deltas: list[QuestionDelta] = Field(default_factory=list)
    compared_questions: int = 0
    length_mismatch: bool = False


class ExperimentComparison(FrozenModel):
    """Comparison of two assembled experiments."""

    current_name: str
    current_version: int
    previous_name: str
    previous_version: int
    metric_changes: dict[str, float]
    metric_absolute: dict[str, float]
    questions: Comparison


class QuestionAnswer(FrozenModel):
    """One experiment's answer to a question."""

    experiment_name: str
    experiment_description: str
    version: int
    response: JSONValue = None
    scores: dict[str, JSONValue]


class QuestionHistory(FrozenModel):
    """All answers given to the same prompt across experiments."""

    prompt: str
    answers: list[QuestionAnswer] = Field(default_factory=list)


class BundlePayload(EvalboardBaseModel):
    """Data blob inlined into a static report."""

    experiments: list[ExperimentIndexEntry] = Field(default_factory=list)
    results: dict[str, JSONValue] = Field(default_factory=dict)
    descriptions: dict[str, str] = Field(default_factory=dict)


_ = Experiment.model_rebuild()
