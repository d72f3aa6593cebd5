"""Utility modules for Labcoat."""

from labcoat.utils.logging import experiment_context, get_logger, setup_logging
from labcoat.utils.metrics import metrics, ExperimentMetrics

__all__ = [
    "setup_logging",
    "get_logger",
    "experiment_context",
    "metrics",
    "ExperimentMetrics",
]
