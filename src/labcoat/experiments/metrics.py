"""Experiments that publish their results as metrics."""

from __future__ import annotations

from typing import Any

from labcoat.core.experiment import Experiment
from labcoat.core.models import Result
from labcoat.utils.metrics import ExperimentMetrics, metrics as default_metrics


class MetricsExperiment(Experiment):
    """
    Publishes behavior durations and the run outcome to a metrics collector.

    Each run records the control duration, one duration per candidate, and
    increments one of the matched, ignored or mismatched counters.
    """

    def __init__(
        self,
        name: str | None = None,
        collector: ExperimentMetrics | None = None,
    ):
        super().__init__(name)
        self.collector = collector or default_metrics

    def publish(self, context: Any, result: Result) -> None:
        self.collector.record_result(result)
