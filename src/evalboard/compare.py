# Copyright (c) Syntropy Systems
"""Question-by-question comparison of two experiment versions."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from evalboard.models.experiment import (
    Comparison,
    ExperimentComparison,
    QuestionAnswer,
    QuestionDelta,
    QuestionHistory,
)
from evalboard.models.results import METRICS, ResultRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

    from evalboard.models.experiment import Experiment

logger = logging.getLogger(__name__)


def percentage_change(current: float, previous: float) -> float:
    """Relative change in percent.

    A previous value of zero maps to +100 when the current value is
    positive and to 0 otherwise.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def question_delta(
    question_number: int,
    current: ResultRecord,
    previous: ResultRecord,
) -> QuestionDelta | None:
    """Score changes for one question, or None if no metric is scored on both sides."""
    changes: dict[str, float | None] = {}
    absolute: dict[str, float | None] = {}
    contributing: list[float] = []

    for metric in METRICS:
        now = current.score(metric)
        before = previous.score(metric)
        if now is None or before is None:
            changes[metric.value] = None
            absolute[metric.value] = None
            continue
        change = percentage_change(now, before)
        changes[metric.value] = change
        absolute[metric.value] = now - before
        contributing.append(change)

    if not contributing:
        return None

    return QuestionDelta(
        question_number=question_number,
        prompt=current.prompt,
        changes=changes,
        absolute=absolute,
        previous=previous.score_triple(),
        current=current.score_triple(),
        avg_change=sum(contributing) / len(contributing),
    )


def compare_metrics(
    current: Sequence[ResultRecord],
    previous: Sequence[ResultRecord],
) -> Comparison:
    """Find the questions that improved and declined the most.

    Records are paired by position: question N of one version is compared
    with question N of the other, whatever their prompts. Questions past the
    end of the shorter list are skipped.
    """
    length_mismatch = len(current) != len(previous)
    if length_mismatch:
        logger.warning(
            "Comparing result lists of different lengths (%d vs %d); "
            "only the first %d questions are paired",
            len(current),
            len(previous),
            min(len(current), len(previous)),
        )

    deltas: list[QuestionDelta] = []
    for index, (now, before) in enumerate(zip(current, previous)):
        delta = question_delta(index + 1, now, before)
        if delta is not None:
            deltas.append(delta)

    compared = min(len(current), len(previous))
    if not deltas:
        return Comparison(compared_questions=compared, length_mismatch=length_mismatch)

    ranked = sorted(deltas, key=lambda d: d.avg_change, reverse=True)
    return Comparison(
        biggest_improvement=ranked[0],
        biggest_decline=ranked[-1],
        deltas=deltas,
        compared_questions=compared,
        length_mismatch=length_mismatch,
    )


def compare_experiments(current: Experiment, previous: Experiment) -> ExperimentComparison:
    """Compare two experiments' averages and their individual questions."""
    metric_changes = {
        metric.value: percentage_change(
            current.metrics.get(metric), previous.metrics.get(metric)
        )
        for metric in METRICS
    }
    metric_absolute = {
        metric.value: current.metrics.get(metric) - previous.metrics.get(metric)
        for metric in METRICS
    }
    return ExperimentComparison(
        current_name=current.name,
        current_version=current.version,
        previous_name=previous.name,
        previous_version=previous.version,
        metric_changes=metric_changes,
        metric_absolute=metric_absolute,
        questions=compare_metrics(current.results, previous.results),
    )


def question_history(experiments: Sequence[Experiment]) -> list[QuestionHistory]:
    """Group every experiment's answers by prompt text, in first-seen order."""
    grouped: dict[str, list[QuestionAnswer]] = {}
    for experiment in experiments:
        for result in experiment.results:
            prompt = result.prompt if isinstance(result.prompt, str) else str(result.prompt)
            grouped.setdefault(prompt, []).append(
                QuestionAnswer(
                    experiment_name=experiment.name,
                    experiment_description=experiment.description,
                    version=experiment.version,
                    response=result.response,
                    scores=result.score_triple(),
                )
            )
    return [QuestionHistory(prompt=prompt, answers=answers) for prompt, answers in grouped.items()]
