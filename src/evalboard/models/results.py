# Copyright (c) Syntropy Systems
"""Pydantic models for evaluated prompt/response records."""

from __future__ import annotations

import math
from enum import Enum

from pydantic import Field, field_validator

from .base import FrozenModel, JSONValue

# Marker used upstream for "not evaluated"
UNSCORED = -1


class Metric(str, Enum):
    """Evaluation metrics reported for every record."""

    CORRECTNESS = "correctness"
    CORRECTNESS_WEIGHTED = "correctness_weighted"
    FAITHFULNESS = "faithfulness"

    @property
    def label(self) -> str:
        """Human readable metric name."""
        return _METRIC_LABELS[self]

    @property
    def claims_field(self) -> str:
        """Name of the record field holding this metric's claims."""
        return f"{self.value}_claims"


_METRIC_LABELS = {
    Metric.CORRECTNESS: "Correctness",
    Metric.CORRECTNESS_WEIGHTED: "Weighted correctness",
    Metric.FAITHFULNESS: "Faithfulness",
}

METRICS: tuple[Metric, ...] = tuple(Metric)


def is_number(value: object) -> bool:
    """Return True for int/float values, excluding booleans and NaN."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def as_score(value: object) -> float | None:
    """Convert a raw score into an optional float.

    Returns None for the unscored marker and for anything that is not a number.
    """
    if not is_number(value) or value == UNSCORED:
        return None
    return float(value)  # pyright: ignore[reportArgumentType] - checked by is_number


class Claim(FrozenModel):
    """Atomic fact check backing a correctness or faithfulness score.

    Fields keep their raw JSON values; a claim is display data only.
    """

    statement: JSONValue = ""
    score: JSONValue = None
    context: JSONValue = ""


class ResultRecord(FrozenModel):
    """One evaluated prompt/response pair.

    Score fields keep the raw JSON value so validation can report
    non-numeric scores instead of failing the whole file at parse time.
    """

    run_name: JSONValue = None
    prompt: JSONValue = None
    response: JSONValue = None
    correctness: JSONValue = None
    correctness_weighted: JSONValue = None
    faithfulness: JSONValue = None
    correctness_claims: list[Claim] = Field(default_factory=list)
    correctness_weighted_claims: list[Claim] = Field(default_factory=list)
    faithfulness_claims: list[Claim] = Field(default_factory=list)

    @field_validator(
        "correctness_claims",
        "correctness_weighted_claims",
        "faithfulness_claims",
        mode="before",
    )
    @classmethod
    def _lenient_claims(cls, value: object) -> object:
        # Non-list values and non-object items are dropped
        if not isinstance(value, list):
            return []
        return [claim for claim in value if isinstance(claim, (dict, Claim))]

    def raw_score(self, metric: Metric) -> JSONValue:
        """Return the score exactly as it appeared in the source file."""
        return getattr(self, metric.value)

    def score(self, metric: Metric) -> float | None:
        """Return the score for a metric, or None when it was not evaluated."""
        return as_score(self.raw_score(metric))

    def claims(self, metric: Metric) -> list[Claim]:
        """Return the claims backing a metric."""
        return getattr(self, metric.claims_field)

    def score_triple(self) -> dict[str, JSONValue]:
        """Raw values of all three metrics keyed by metric name."""
        return {metric.value: self.raw_score(metric) for metric in METRICS}

    def matches(self, term: str) -> bool:
        """Case-insensitive search over prompt and response text."""
        needle = term.lower()
        return any(
            isinstance(text, str) and needle in text.lower()
            for text in (self.prompt, self.response)
        )
