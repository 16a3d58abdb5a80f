# Copyright (c) Syntropy Systems
"""Pydantic models for evalboard API responses."""

from __future__ import annotations

from .base import EvalboardBaseModel
from .experiment import IndividualScores, Metrics, ValidationSummary


class ExperimentSummaryResponse(EvalboardBaseModel):
    """Aggregated view of one experiment."""

    name: str
    description: str
    version: int
    previous_version: str | None = None
    metrics: Metrics
    individual_scores: IndividualScores
    validation: ValidationSummary
    is_valid: bool
    errors: list[str]


class ErrorResponse(EvalboardBaseModel):
    """Error response."""

    detail: str
    error_code: str | None = None


class HealthResponse(EvalboardBaseModel):
    """Health check response."""

    status: str
