# Copyright (c) Syntropy Systems
"""Assemble validated, aggregated experiments linked to their previous version."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from evalboard.loader import (
    ExperimentLoadError,
    ExperimentSource,
    default_description,
    parse_results,
)
from evalboard.metrics import (
    HIGH_FAITHFULNESS_THRESHOLD,
    MetricsCache,
    calculate_metrics,
    experiment_stats,
    get_default_cache,
)
from evalboard.models.experiment import Experiment, ExperimentIndexEntry
from evalboard.validation import (
    build_validation_checks,
    log_validation_results,
    validate_results,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)


class ExperimentIndexError(ValueError):
    """Version numbers in the index are not 1-based, contiguous and unique."""


@dataclass(frozen=True)
class VersionOrder:
    """Mapping of experiment name to its 1-based version number."""

    versions: Mapping[str, int]

    def __post_init__(self) -> None:
        numbers = sorted(self.versions.values())
        if numbers != list(range(1, len(numbers) + 1)):
            msg = (
                "Experiment versions must be unique and contiguous from 1, "
                f"got {numbers}"
            )
            raise ExperimentIndexError(msg)

    @classmethod
    def from_index(cls, entries: Sequence[ExperimentIndexEntry]) -> VersionOrder:
        """Build the order table from experiments.json entries."""
        versions: dict[str, int] = {}
        for entry in entries:
            if entry.name in versions:
                msg = f"Duplicate experiment name in index: {entry.name}"
                raise ExperimentIndexError(msg)
            versions[entry.name] = entry.version
        return cls(versions=versions)

    def version_of(self, name: str) -> int | None:
        """Version number of an experiment, or None if unknown."""
        return self.versions.get(name)

    def name_at(self, version: int) -> str | None:
        """Experiment name at a version, or None if out of range."""
        for name, number in self.versions.items():
            if number == version:
                return name
        return None

    def names(self) -> list[str]:
        """Experiment names ordered by version."""
        return sorted(self.versions, key=self.versions.__getitem__)

    def __len__(self) -> int:
        return len(self.versions)


class ExperimentAssembler:
    """Builds Experiment values from a data source.

    Every load re-reads and re-validates the requested experiment and all of
    its ancestors, so each version carries its own validation report.
    """

    source: ExperimentSource
    cache: MetricsCache
    high_faithfulness_threshold: float
    _order: VersionOrder | None
    _entries: dict[str, ExperimentIndexEntry] | None

    def __init__(
        self,
        source: ExperimentSource,
        order: VersionOrder | None = None,
        cache: MetricsCache | None = None,
        high_faithfulness_threshold: float = HIGH_FAITHFULNESS_THRESHOLD,
    ) -> None:
        self.source = source
        self.cache = cache if cache is not None else get_default_cache()
        self.high_faithfulness_threshold = high_faithfulness_threshold
        self._order = order
        self._entries = None

    def entries(self) -> dict[str, ExperimentIndexEntry]:
        """Index entries keyed by name, loaded once per assembler."""
        if self._entries is None:
            self._entries = {entry.name: entry for entry in self.source.load_index()}
        return self._entries

    def order(self) -> VersionOrder:
        """The version order table, derived from the index unless supplied."""
        if self._order is None:
            self._order = VersionOrder.from_index(list(self.entries().values()))
        return self._order

    def index(self) -> list[ExperimentIndexEntry]:
        """Index entries in version order."""
        order = self.order()
        return [self._entry_for(name, order) for name in order.names()]

    def _entry_for(self, name: str, order: VersionOrder) -> ExperimentIndexEntry:
        entry = self.entries().get(name)
        if entry is None:
            # Order supplied without a matching index entry
            entry = ExperimentIndexEntry(
                name=name,
                version=order.version_of(name) or 0,
                path=name,
            )
        return entry

    def _assemble(
        self,
        entry: ExperimentIndexEntry,
        version: int,
        previous: Experiment | None,
    ) -> Experiment | None:
        try:
            results = parse_results(self.source.load_raw_results(entry))
        except ExperimentLoadError:
            logger.exception("Error loading experiment data for %s", entry.name)
            return None

        validation = validate_results(results)
        validation = validation.model_copy(
            update={"checks": build_validation_checks(results, validation)}
        )
        log_validation_results(validation, entry.name)

        aggregated = calculate_metrics(results, self.cache)
        stats = experiment_stats(
            results,
            valid_questions=len(validation.valid_results),
            high_faithfulness_threshold=self.high_faithfulness_threshold,
        )
        description = (
            self.source.load_description(entry)
            or entry.description
            or default_description(entry.name)
        )

        return Experiment(
            name=entry.name,
            description=description,
            version=version,
            results=results,
            metrics=aggregated.metrics,
            individual_scores=aggregated.individual_scores,
            validation=validation,
            stats=stats,
            data_path=self.source.describe_location(entry),
            previous_version=previous,
        )

    def build_chain(self, up_to: int) -> dict[int, Experiment | None]:
        """Assemble versions 1..up_to in order, linking each to the one before.

        A version that fails to load is None and its successor gets no
        previous version; later versions are still assembled.
        """
        order = self.order()
        chain: dict[int, Experiment | None] = {}
        previous: Experiment | None = None
        for version in range(1, min(up_to, len(order)) + 1):
            name = order.name_at(version)
            if name is None:
                break
            experiment = self._assemble(self._entry_for(name, order), version, previous)
            chain[version] = experiment
            previous = experiment
        return chain

    def load_experiment(self, name: str) -> Experiment | None:
        """Load one experiment with its chain of previous versions.

        Returns None, after logging the cause, when anything about the
        experiment cannot be loaded.
        """
        try:
            order = self.order()
        except (ExperimentLoadError, ExperimentIndexError):
            logger.exception("Error loading experiment index")
            return None

        version = order.version_of(name)
        if version is None:
            logger.error("Unknown experiment: %s", name)
            return None

        return self.build_chain(version).get(version)

    def load_all_experiments(self) -> list[Experiment]:
        """Load every experiment that can be loaded, in version order."""
        try:
            order = self.order()
        except (ExperimentLoadError, ExperimentIndexError):
            logger.exception("Error loading experiment index")
            return []

        chain = self.build_chain(len(order))
        return [experiment for experiment in chain.values() if experiment is not None]
