# Copyright (c) Syntropy Systems
"""Per-metric averages over result records, with a TTL cache."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import TypeAdapter

from evalboard.models.base import JSONValue
from evalboard.models.experiment import (
    ExperimentStats,
    IndividualScores,
    Metrics,
    MetricsResult,
)
from evalboard.models.results import METRICS, Metric, ResultRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 5 * 60
HIGH_FAITHFULNESS_THRESHOLD = 0.85

_KEY_ADAPTER = TypeAdapter(list[dict[str, JSONValue]])


def cache_key(results: Sequence[ResultRecord]) -> str:
    """Content-derived key over the score triples of all records."""
    triples = [r.score_triple() for r in results]
    return _KEY_ADAPTER.dump_json(triples).decode("utf-8")


@dataclass
class _CacheEntry:
    result: MetricsResult
    timestamp: float


@dataclass
class MetricsCache:
    """In-memory cache of aggregated metrics keyed by score content.

    Entries expire ``ttl`` seconds after they were computed; there is no
    size limit.
    """

    ttl: float = DEFAULT_CACHE_TTL
    clock: Callable[[], float] = time.monotonic
    hits: int = 0
    misses: int = 0
    _entries: dict[str, _CacheEntry] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get(self, key: str) -> MetricsResult | None:
        """Return a fresh cached result, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self.clock() - entry.timestamp >= self.ttl:
                self.misses += 1
                return None
            self.hits += 1
            return entry.result

    def put(self, key: str, result: MetricsResult) -> None:
        """Store a result stamped with the current time."""
        with self._lock:
            self._entries[key] = _CacheEntry(result=result, timestamp=self.clock())

    def reset(self) -> None:
        """Drop all entries and counters."""
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_cache = MetricsCache()


def get_default_cache() -> MetricsCache:
    """Get the process-wide cache used when none is passed in."""
    return _default_cache


def average(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def scored_values(results: Sequence[ResultRecord], metric: Metric) -> list[float]:
    """Scores for one metric, skipping records where that metric is unscored."""
    values: list[float] = []
    for result in results:
        score = result.score(metric)
        if score is not None:
            values.append(score)
    return values


def _compute_metrics(results: Sequence[ResultRecord]) -> MetricsResult:
    averages = {metric.value: average(scored_values(results, metric)) for metric in METRICS}
    individual = {
        metric.value: [r.raw_score(metric) for r in results] for metric in METRICS
    }
    logger.debug("Computed metrics over %d results: %s", len(results), averages)
    return MetricsResult(
        metrics=Metrics.model_validate(averages),
        individual_scores=IndividualScores.model_validate(individual),
    )


def calculate_metrics(
    results: Sequence[ResultRecord],
    cache: MetricsCache | None = None,
) -> MetricsResult:
    """Average each metric independently over its scored records.

    A record that is unscored for one metric still contributes to the
    others. ``individual_scores`` keeps the raw values, unscored included.
    """
    if cache is None:
        cache = _default_cache

    key = cache_key(results)
    cached = cache.get(key)
    if cached is not None:
        return cached

    result = _compute_metrics(results)
    cache.put(key, result)
    return result


def experiment_stats(
    results: Sequence[ResultRecord],
    valid_questions: int,
    high_faithfulness_threshold: float = HIGH_FAITHFULNESS_THRESHOLD,
) -> ExperimentStats:
    """Count scored questions per metric and high-faithfulness answers."""
    scored = {metric.value: len(scored_values(results, metric)) for metric in METRICS}
    fully_scored = sum(
        1 for r in results if all(r.score(metric) is not None for metric in METRICS)
    )
    high_faithfulness = sum(
        1
        for value in scored_values(results, Metric.FAITHFULNESS)
        if value >= high_faithfulness_threshold
    )
    return ExperimentStats(
        total_questions=len(results),
        valid_questions=valid_questions,
        scored=scored,
        fully_scored=fully_scored,
        high_faithfulness=high_faithfulness,
    )
