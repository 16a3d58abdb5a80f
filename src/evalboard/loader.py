# Copyright (c) Syntropy Systems
"""Data sources for experiment indexes and result files."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, cast

import httpx
from pydantic import TypeAdapter, ValidationError
from typing_extensions import Self

from evalboard.models.experiment import BundlePayload, ExperimentIndexEntry
from evalboard.models.results import ResultRecord

if TYPE_CHECKING:
    from types import TracebackType

    from evalboard.models.base import JSONValue

logger = logging.getLogger(__name__)

INDEX_FILE = "experiments.json"
RUN_FILE = "run.json"
DESCRIPTION_FILE = "description.txt"

_INDEX_ADAPTER = TypeAdapter(list[ExperimentIndexEntry])
_RESULTS_ADAPTER = TypeAdapter(list[ResultRecord])


class ExperimentLoadError(Exception):
    """Raw experiment data could not be read or parsed."""


class StructuralError(ExperimentLoadError):
    """Raw experiment data parsed but is not an array of records."""


class ExperimentSource(Protocol):
    """Where experiment indexes and result files come from."""

    def load_index(self) -> list[ExperimentIndexEntry]:
        ...

    def load_raw_results(self, entry: ExperimentIndexEntry) -> JSONValue:
        ...

    def load_description(self, entry: ExperimentIndexEntry) -> str | None:
        ...

    def describe_location(self, entry: ExperimentIndexEntry) -> str:
        ...


def parse_index(data: object) -> list[ExperimentIndexEntry]:
    """Validate experiments.json content."""
    if not isinstance(data, list):
        msg = "Experiment index must be an array"
        raise StructuralError(msg)
    try:
        return _INDEX_ADAPTER.validate_python(data)
    except ValidationError as e:
        msg = f"Invalid experiment index: {e}"
        raise ExperimentLoadError(msg) from e


def parse_results(data: object) -> list[ResultRecord]:
    """Turn a decoded run file into records.

    Score fields are not checked here; that is the validator's job.
    """
    if not isinstance(data, list):
        msg = "Results must be an array"
        raise StructuralError(msg)
    try:
        return _RESULTS_ADAPTER.validate_python(data)
    except ValidationError as e:
        msg = f"Invalid result records: {e}"
        raise ExperimentLoadError(msg) from e


def default_description(name: str) -> str:
    """Title-case an experiment name: results_basic_prompts -> Results Basic Prompts."""
    words = name.replace("_", " ").split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def _read_json(path: Path) -> JSONValue:
    try:
        return cast("JSONValue", json.loads(path.read_text(encoding="utf-8")))
    except OSError as e:
        msg = f"Could not read {path}: {e}"
        raise ExperimentLoadError(msg) from e
    except UnicodeDecodeError as e:
        msg = f"{path} is not valid UTF-8: {e}"
        raise ExperimentLoadError(msg) from e
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON in {path}: {e}"
        raise ExperimentLoadError(msg) from e


class DirectorySource:
    """Reads experiments.json and <path>/run.json files from disk."""

    data_dir: Path

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir

    def run_path(self, entry: ExperimentIndexEntry) -> Path:
        """Path of an experiment's run file."""
        return self.data_dir / (entry.path or entry.name) / RUN_FILE

    def load_index(self) -> list[ExperimentIndexEntry]:
        """Read and validate experiments.json."""
        return parse_index(_read_json(self.data_dir / INDEX_FILE))

    def load_raw_results(self, entry: ExperimentIndexEntry) -> JSONValue:
        """Read an experiment's run file without interpreting it."""
        path = self.run_path(entry)
        logger.debug("Loading data from %s", path)
        return _read_json(path)

    def load_description(self, entry: ExperimentIndexEntry) -> str | None:
        """Read description.txt next to the run file, if present."""
        path = self.data_dir / (entry.path or entry.name) / DESCRIPTION_FILE
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8").strip() or None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not load description for %s: %s", entry.name, e)
            return None

    def describe_location(self, entry: ExperimentIndexEntry) -> str:
        """Human readable location of the run file."""
        return str(self.run_path(entry))


class BundleSource:
    """Serves experiments from a data blob embedded at build time."""

    payload: BundlePayload

    def __init__(self, payload: BundlePayload) -> None:
        self.payload = payload

    @classmethod
    def from_json(cls, text: str) -> Self:
        """Build a source from the serialized bundle payload."""
        try:
            return cls(BundlePayload.model_validate_json(text))
        except ValidationError as e:
            msg = f"Invalid bundle payload: {e}"
            raise ExperimentLoadError(msg) from e

    def load_index(self) -> list[ExperimentIndexEntry]:
        """Return the embedded index."""
        return list(self.payload.experiments)

    def load_raw_results(self, entry: ExperimentIndexEntry) -> JSONValue:
        """Return the embedded run data for an experiment."""
        if entry.name not in self.payload.results:
            msg = f"No embedded results for {entry.name}"
            raise ExperimentLoadError(msg)
        return self.payload.results[entry.name]

    def load_description(self, entry: ExperimentIndexEntry) -> str | None:
        """Return the embedded description, if any."""
        return self.payload.descriptions.get(entry.name)

    def describe_location(self, entry: ExperimentIndexEntry) -> str:
        """Location label for embedded data."""
        return f"bundle:{entry.name}"


class RemoteSource:
    """Fetches experiments from a running evalboard dashboard."""

    base_url: str
    _client: httpx.Client

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            base_url: Dashboard URL (e.g., "http://localhost:8265")
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client, mainly for tests

        """
        self.base_url = base_url.rstrip("/")
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> Self:
        """Enter the source context and return self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the source context and close the HTTP client."""
        self.close()

    def _get(self, path: str) -> JSONValue:
        url = f"{self.base_url}{path}"
        try:
            response = self._client.get(url)
            _ = response.raise_for_status()
            return cast("JSONValue", response.json())
        except httpx.HTTPStatusError as e:
            msg = f"Server error {e.response.status_code} for {url}"
            raise ExperimentLoadError(msg) from e
        except httpx.RequestError as e:
            msg = f"Connection error: {e}"
            raise ExperimentLoadError(msg) from e
        except ValueError as e:
            msg = f"Invalid JSON from {url}: {e}"
            raise ExperimentLoadError(msg) from e

    def load_index(self) -> list[ExperimentIndexEntry]:
        """Fetch the experiment index."""
        return parse_index(self._get("/api/experiments"))

    def load_raw_results(self, entry: ExperimentIndexEntry) -> JSONValue:
        """Fetch an experiment's raw run data."""
        return self._get(f"/api/experiments/{entry.name}")

    def load_description(self, entry: ExperimentIndexEntry) -> str | None:
        """Descriptions are served inside the index entries."""
        return entry.description or None

    def describe_location(self, entry: ExperimentIndexEntry) -> str:
        """URL of the experiment's raw data."""
        return f"{self.base_url}/api/experiments/{entry.name}"
