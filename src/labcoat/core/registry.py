"""
Behavior registry for a single experiment.

Holds one control behavior under a reserved name plus any number of
uniquely named candidates.
"""

from __future__ import annotations

import random
from threading import Lock

from labcoat.core.errors import BehaviorAlreadyExists
from labcoat.core.models import CONTROL_NAME, Behavior


class BehaviorRegistry:
    """Append-only mapping of behavior names to behaviors."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._behaviors: dict[str, Behavior] = {}

    def set_control(self, behavior: Behavior) -> None:
        """
        Register the control behavior.

        Raises:
            BehaviorAlreadyExists: If a control is already registered
        """
        self._register(CONTROL_NAME, behavior)

    def add_candidate(self, name: str, behavior: Behavior) -> None:
        """
        Register a candidate behavior under a unique name.

        Raises:
            BehaviorAlreadyExists: If the name is taken, including the
                reserved control name
        """
        self._register(name, behavior)

    def control(self) -> Behavior | None:
        return self._behaviors.get(CONTROL_NAME)

    def lookup(self, name: str) -> Behavior | None:
        return self._behaviors.get(name)

    def shuffled_names(self) -> list[str]:
        """
        Return every registered name, control included, in random order.

        A generator seeded from fresh OS entropy is created per call, so
        concurrent runs never share a permutation sequence.
        """
        names = list(self._behaviors)
        random.Random().shuffle(names)
        return names

    @property
    def names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._behaviors)

    def _register(self, name: str, behavior: Behavior) -> None:
        with self._lock:
            if name in self._behaviors:
                raise BehaviorAlreadyExists(name)
            self._behaviors[name] = behavior

    def __len__(self) -> int:
        return len(self._behaviors)

    def __contains__(self, name: object) -> bool:
        return name in self._behaviors
