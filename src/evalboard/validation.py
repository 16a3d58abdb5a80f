# Copyright (c) Syntropy Systems
"""Structural and range validation of result records."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from evalboard.models.experiment import (
    ValidationCheck,
    ValidationReport,
    ValidationSummary,
)
from evalboard.models.results import UNSCORED, Metric, ResultRecord, is_number

if TYPE_CHECKING:
    from collections.abc import Sequence

    from evalboard.models.base import JSONValue

logger = logging.getLogger(__name__)

_METRIC_ERROR_NAMES = {
    Metric.CORRECTNESS: "correctness",
    Metric.CORRECTNESS_WEIGHTED: "weighted correctness",
    Metric.FAITHFULNESS: "faithfulness",
}


def is_valid_score(value: JSONValue) -> bool:
    """A score is valid if it is a number in [0, 1] or exactly the unscored marker."""
    if not is_number(value):
        return False
    return value == UNSCORED or 0 <= value <= 1  # pyright: ignore[reportOperatorIssue]


def validate_results(results: Sequence[ResultRecord] | object) -> ValidationReport:
    """Validate a batch of records.

    Problems are reported, never raised. Records with at least one error are
    left out of ``valid_results``; ``is_valid`` is only True when no record
    had an error at all.
    """
    if not isinstance(results, (list, tuple)):
        return ValidationReport(
            is_valid=False,
            errors=["Results must be an array"],
        )

    summary = ValidationSummary(total_results=len(results))
    valid_results: list[ResultRecord] = []
    all_errors: list[str] = []

    for index, result in enumerate(results):
        errors: list[str] = []

        if not result.prompt:
            errors.append(f"Result {index}: Missing prompt")
            summary.results_with_missing_data += 1
        if not result.response:
            errors.append(f"Result {index}: Missing response")
            summary.results_with_missing_data += 1

        for metric in Metric:
            if not is_valid_score(result.raw_score(metric)):
                errors.append(
                    f"Result {index}: Invalid {_METRIC_ERROR_NAMES[metric]} value"
                )
                summary.results_with_invalid_data += 1

        if errors:
            all_errors.extend(errors)
        else:
            valid_results.append(result)

    return ValidationReport(
        is_valid=not all_errors,
        valid_results=valid_results,
        errors=all_errors,
        summary=summary,
    )


def build_validation_checks(
    results: Sequence[ResultRecord] | object,
    report: ValidationReport,
) -> list[ValidationCheck]:
    """Build the structural checks displayed on the validation page."""
    is_array = isinstance(results, (list, tuple))
    total = len(results) if isinstance(results, (list, tuple)) else 0
    valid_count = len(report.valid_results)

    return [
        ValidationCheck(
            description="JSON file structure",
            passed=is_array,
            details=(
                f"Valid array structure with {total} results"
                if is_array
                else "Invalid structure - expected an array"
            ),
        ),
        ValidationCheck(
            description="Result validation",
            passed=valid_count > 0,
            details=f"Found {valid_count} valid results out of {total}",
        ),
        ValidationCheck(
            description="Metrics",
            passed=all(
                is_number(r.raw_score(metric))
                for r in report.valid_results
                for metric in Metric
            ),
            details="All metrics have a numeric type",
        ),
    ]


def log_validation_results(report: ValidationReport, name: str | None = None) -> None:
    """Log a validation report summary."""
    prefix = f"[{name}] " if name else ""
    summary = report.summary
    logger.info(
        "%sValidation: %d results, %d valid, %d missing fields, %d invalid metrics",
        prefix,
        summary.total_results,
        len(report.valid_results),
        summary.results_with_missing_data,
        summary.results_with_invalid_data,
    )
    for error in report.errors:
        logger.debug("%s%s", prefix, error)
