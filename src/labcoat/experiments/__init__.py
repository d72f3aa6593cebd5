"""
Ready-made experiments.

Feature-flag gating, metrics publishing, and console reporting built on
top of :class:`labcoat.Experiment`.
"""

from labcoat.experiments.console import ConsoleExperiment, render_result
from labcoat.experiments.feature_flags import FeatureFlagExperiment
from labcoat.experiments.metrics import MetricsExperiment

__all__ = [
    "ConsoleExperiment",
    "FeatureFlagExperiment",
    "MetricsExperiment",
    "render_result",
]
