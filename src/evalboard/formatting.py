# Copyright (c) Syntropy Systems
"""Display helpers shared by the CLI and the dashboard templates."""
from __future__ import annotations

from evalboard.models.results import as_score


def format_metric_value(value: object) -> str:
    """Format a score as a percentage, '-' when unscored."""
    score = as_score(value)
    if score is None:
        return "-"
    return f"{score * 100:.1f}%"


def format_metric_value_raw(value: object) -> str:
    """Format a score with three decimals, 'N/A' when unscored."""
    score = as_score(value)
    if score is None:
        return "N/A"
    return f"{score:.3f}"


def format_change(change: float | None) -> str:
    """Format a percentage change with an explicit sign."""
    if change is None:
        return "-"
    sign = "+" if change > 0 else ""
    return f"{sign}{change:.1f}%"


def change_style(change: float | None) -> str:
    """Rich/CSS-neutral style name for a change: up, down or flat."""
    if change is None or change == 0:
        return "flat"
    return "up" if change > 0 else "down"


def format_prompt(value: object, limit: int | None = None) -> str:
    """Render a prompt or response, optionally truncated."""
    text = value if isinstance(value, str) else ("" if value is None else str(value))
    if limit is not None and len(text) > limit:
        return text[: limit - 1].rstrip() + "…"
    return text


TEMPLATE_FILTERS = {
    "metric": format_metric_value,
    "metric_raw": format_metric_value_raw,
    "change": format_change,
    "change_style": change_style,
    "prompt": format_prompt,
}
