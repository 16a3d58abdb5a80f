# Copyright (c) Syntropy Systems
"""Configuration management for evalboard."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import yaml

DATA_DIR_ENV = "EVALBOARD_DATA_DIR"


@dataclass
class EvalboardConfig:
    """Configuration for evalboard."""

    # Directory holding experiments.json and the per-experiment folders
    data_dir: str = "mlflow_results"

    # Lifetime of cached metric aggregates (seconds)
    cache_ttl_seconds: int = 300

    # Faithfulness at or above this counts as "high"
    high_faithfulness_threshold: float = 0.85

    # Default port for `evalboard dashboard`
    dashboard_port: int = 8265


def find_evalboard_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .evalboard directory by walking up from start_path.

    Returns None if no .evalboard directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        evalboard_dir = current / ".evalboard"
        if evalboard_dir.is_dir():
            return evalboard_dir
        current = current.parent

    # Check root
    evalboard_dir = current / ".evalboard"
    if evalboard_dir.is_dir():
        return evalboard_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global evalboard config directory (~/.evalboard)."""
    return Path.home() / ".evalboard"


def load_config(evalboard_dir: Path | None = None) -> EvalboardConfig:
    """Load configuration from .evalboard/config.yaml or defaults.

    Looks for config in:
    1. Provided evalboard_dir
    2. Nearest .evalboard directory walking up
    3. ~/.evalboard/config.yaml
    4. Defaults
    """
    config = EvalboardConfig()

    # Find config file
    config_path = None

    if evalboard_dir is not None:
        config_path = evalboard_dir / "config.yaml"
    else:
        found_dir = find_evalboard_dir()
        if found_dir is not None:
            config_path = found_dir / "config.yaml"
        else:
            global_config = get_global_config_dir() / "config.yaml"
            if global_config.exists():
                config_path = global_config

    if config_path is not None and config_path.exists():
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        data_dir = data.get("data_dir")
        if isinstance(data_dir, str) and data_dir:
            # Relative paths are relative to the project, not the .evalboard dir
            path = Path(data_dir).expanduser()
            if not path.is_absolute():
                path = config_path.parent.parent / path
            config.data_dir = str(path)
        cache_ttl = data.get("cache_ttl_seconds")
        if isinstance(cache_ttl, (int, float)):
            config.cache_ttl_seconds = int(cache_ttl)
        threshold = data.get("high_faithfulness_threshold")
        if isinstance(threshold, (int, float)):
            config.high_faithfulness_threshold = float(threshold)
        dashboard_port = data.get("dashboard_port")
        if isinstance(dashboard_port, int):
            config.dashboard_port = dashboard_port

    return config


def resolve_data_dir(
    config: EvalboardConfig | None = None,
    override: Path | None = None,
) -> Path:
    """Resolve the results directory.

    An explicit override wins, then $EVALBOARD_DATA_DIR, then the config.
    """
    if override is not None:
        return override

    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)

    if config is None:
        config = load_config()
    return Path(config.data_dir)


def require_data_dir(
    config: EvalboardConfig | None = None,
    override: Path | None = None,
) -> Path:
    """Get the results directory or raise an error if it has no index."""
    data_dir = resolve_data_dir(config, override)
    if not (data_dir / "experiments.json").is_file():
        msg = (
            f"No experiments.json found in {data_dir}. "
            f"Pass --data-dir or set {DATA_DIR_ENV}."
        )
        raise RuntimeError(msg)
    return data_dir
