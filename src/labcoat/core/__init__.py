"""Core experiment components."""

from labcoat.core.engine import run, run_async
from labcoat.core.experiment import BaseExperiment, Experiment
from labcoat.core.models import CONTROL_NAME, Observation, Result
from labcoat.core.registry import BehaviorRegistry

__all__ = [
    "run",
    "run_async",
    "BaseExperiment",
    "Experiment",
    "CONTROL_NAME",
    "Observation",
    "Result",
    "BehaviorRegistry",
]
