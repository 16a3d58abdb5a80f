"""
evalboard - Browse and compare LLM evaluation runs.

Validate result files, average their scores, compare versions.
"""

from evalboard.assembler import ExperimentAssembler, VersionOrder
from evalboard.compare import compare_metrics
from evalboard.metrics import MetricsCache, calculate_metrics
from evalboard.validation import validate_results

__version__ = "0.1.0"
__all__ = [
    "ExperimentAssembler",
    "MetricsCache",
    "VersionOrder",
    "__version__",
    "calculate_metrics",
    "compare_metrics",
    "validate_results",
]
