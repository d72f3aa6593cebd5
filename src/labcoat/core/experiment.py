"""
Experiment definitions.

An experiment supplies the behaviors to run and the policy hooks the engine
consults around them: whether the experiment is enabled, how candidates are
compared against the control, which mismatches can be ignored, and where
results are published.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from labcoat.core.config import get_settings
from labcoat.core.models import Behavior, Observation, Result
from labcoat.core.registry import BehaviorRegistry


class BaseExperiment(ABC):
    """
    Capability set the engine relies on.

    Subclasses must provide behavior lookup. Every policy hook has a
    default: always enabled, equality comparison, nothing ignored, and no
    publishing. Override only the hooks you need.
    """

    @property
    def name(self) -> str:
        return get_settings().default_experiment_name

    @abstractmethod
    def control(self) -> Behavior | None:
        """Return the control behavior, or None when it isn't set."""
        ...

    @abstractmethod
    def lookup(self, name: str) -> Behavior | None:
        """Return the behavior registered under ``name``."""
        ...

    @abstractmethod
    def shuffled_names(self) -> list[str]:
        """Return all behavior names, control included, in random order."""
        ...

    def is_enabled(self, context: Any) -> bool:
        """
        Whether candidates should run.

        When disabled, only the control behavior runs.
        """
        return True

    def compare(self, context: Any, control: Observation, candidate: Observation) -> bool:
        """
        Whether a candidate produced the same outcome as the control.

        Values are compared with ``==``. Raised exceptions are equal when
        they have the same type and arguments.
        """
        return control.value == candidate.value and _same_exception(
            control.exception, candidate.exception
        )

    def ignore(self, context: Any, control: Observation, candidate: Observation) -> bool:
        """Whether a mismatched candidate can be ignored. Nothing is ignored by default."""
        return False

    def publish(self, context: Any, result: Result) -> None:
        """Export the result of a run somewhere else. Does nothing by default."""
        return None


class Experiment(BaseExperiment):
    """
    Ready-to-use experiment backed by a behavior registry.

    Example:
        experiment = Experiment("user-lookup")
        experiment.use(lambda ctx: legacy_lookup(ctx["user_id"]))
        experiment.try_("cached", lambda ctx: cached_lookup(ctx["user_id"]))
        user = labcoat.run(experiment, {"user_id": 42})
    """

    def __init__(self, name: str | None = None):
        if name is None:
            name = get_settings().default_experiment_name
        self._name = name
        self.behaviors = BehaviorRegistry()

    @property
    def name(self) -> str:
        return self._name

    def control(self) -> Behavior | None:
        return self.behaviors.control()

    def lookup(self, name: str) -> Behavior | None:
        return self.behaviors.lookup(name)

    def shuffled_names(self) -> list[str]:
        return self.behaviors.shuffled_names()

    def set_control(self, behavior: Behavior) -> None:
        """Set the control behavior."""
        self.behaviors.set_control(behavior)

    def add_candidate(self, name: str, behavior: Behavior) -> None:
        """Add a candidate behavior. Candidate names must be unique."""
        self.behaviors.add_candidate(name, behavior)

    use = set_control
    try_ = add_candidate

    def control_behavior(self, behavior: Behavior) -> Behavior:
        """Decorator form of :meth:`use`."""
        self.use(behavior)
        return behavior

    def candidate(self, name: str) -> Callable[[Behavior], Behavior]:
        """Decorator form of :meth:`try_`."""

        def decorator(behavior: Behavior) -> Behavior:
            self.try_(name, behavior)
            return behavior

        return decorator

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, behaviors={self.behaviors.names!r})"


def _same_exception(a: BaseException | None, b: BaseException | None) -> bool:
    if a is None or b is None:
        return a is b
    return type(a) is type(b) and a.args == b.args
