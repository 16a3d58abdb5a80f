# Copyright (c) Syntropy Systems
"""Pytest fixtures for evalboard tests."""

import json
from collections.abc import Generator
from pathlib import Path

import pytest

from evalboard.metrics import get_default_cache
from evalboard.models.results import ResultRecord

EXPERIMENTS = [
    {
        "name": "results_basic_prompts",
        "description": "Basic prompts",
        "version": 1,
        "path": "1. results_basic_prompts",
    },
    {
        "name": "results_perfect_prompts",
        "description": "Perfect prompts",
        "version": 2,
        "path": "2. results_perfect_prompts",
    },
    {
        "name": "results_perfect_prompts_4o",
        "description": "",
        "version": 3,
        "path": "3. results_perfect_prompts_4o",
    },
]

QUESTIONS = [
    ("What is the capital of France?", "Paris"),
    ("Who wrote Hamlet?", "Shakespeare"),
    ("What is 2+2?", "4"),
]


def record(
    prompt: str = "What is the capital of France?",
    response: str = "Paris",
    correctness: object = 0.5,
    correctness_weighted: object = 0.5,
    faithfulness: object = 0.5,
    **extra: object,
) -> dict[str, object]:
    """Build a raw result record as found in run.json."""
    data: dict[str, object] = {
        "run_name": "run",
        "prompt": prompt,
        "response": response,
        "correctness": correctness,
        "correctness_weighted": correctness_weighted,
        "faithfulness": faithfulness,
        "correctness_claims": [],
        "correctness_weighted_claims": [],
        "faithfulness_claims": [],
    }
    data.update(extra)
    return data


def make_result(**kwargs: object) -> ResultRecord:
    """Build a parsed ResultRecord."""
    return ResultRecord.model_validate(record(**kwargs))  # pyright: ignore[reportArgumentType]


def _scored(scores: list[tuple[float, float, float]]) -> list[dict[str, object]]:
    return [
        record(prompt, response, c, cw, f)
        for (prompt, response), (c, cw, f) in zip(QUESTIONS, scores)
    ]


RUNS: dict[str, list[dict[str, object]]] = {
    "results_basic_prompts": _scored([(0.4, 0.5, 0.8), (0.9, 0.9, -1), (-1, -1, -1)]),
    "results_perfect_prompts": _scored([(0.5, 0.5, 0.8), (0.9, 0.9, 0.9), (1.0, 1.0, 1.0)]),
    "results_perfect_prompts_4o": [
        record(*QUESTIONS[0], 0.6, 0.6, 0.9),
        record(QUESTIONS[1][0], "", 0.9, 0.9, 0.9),
        record(*QUESTIONS[2], 1.5, 1.0, 1.0),
    ],
}


def write_results_dir(root: Path, runs: dict[str, list[dict[str, object]]] = RUNS) -> Path:
    """Write experiments.json and one run.json per experiment."""
    root.mkdir(parents=True, exist_ok=True)
    _ = (root / "experiments.json").write_text(json.dumps(EXPERIMENTS))
    for entry in EXPERIMENTS:
        run_dir = root / str(entry["path"])
        run_dir.mkdir()
        if entry["name"] in runs:
            _ = (run_dir / "run.json").write_text(json.dumps(runs[str(entry["name"])]))
    _ = (root / "2. results_perfect_prompts" / "description.txt").write_text(
        "Perfect prompts with references\n"
    )
    return root


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Reset the shared cache and keep the environment and cwd out of config lookup."""
    monkeypatch.delenv("EVALBOARD_DATA_DIR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    get_default_cache().reset()
    yield
    get_default_cache().reset()


@pytest.fixture
def results_dir(tmp_path: Path) -> Path:
    """A results directory with three experiment versions."""
    return write_results_dir(tmp_path / "mlflow_results")
