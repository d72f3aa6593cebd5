"""
Labcoat - refactor critical paths with confidence.

Runs an existing ("control") implementation side by side with one or more
new ("candidate") implementations, compares their outcomes, and publishes
the comparison while always handing the control's outcome back to the
caller.
"""

__version__ = "1.0.0"
__author__ = "Labcoat Team"

from labcoat.core.engine import run, run_async
from labcoat.core.experiment import BaseExperiment, Experiment
from labcoat.core.models import CONTROL_NAME, Observation, Result
from labcoat.core.registry import BehaviorRegistry
from labcoat.core.errors import (
    LabcoatError,
    BehaviorAlreadyExists,
    ControlDoesNotExist,
    RecoveredFromBadBehavior,
    MismatchError,
)
from labcoat.core.config import LabcoatSettings, get_settings, reload_settings
from labcoat.utils.logging import setup_logging, get_logger

__all__ = [
    "run",
    "run_async",
    "BaseExperiment",
    "Experiment",
    "CONTROL_NAME",
    "Observation",
    "Result",
    "BehaviorRegistry",
    "LabcoatError",
    "BehaviorAlreadyExists",
    "ControlDoesNotExist",
    "RecoveredFromBadBehavior",
    "MismatchError",
    "LabcoatSettings",
    "get_settings",
    "reload_settings",
    "setup_logging",
    "get_logger",
]
