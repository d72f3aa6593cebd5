"""
Exceptions raised by Labcoat.

Control exceptions are never wrapped by these: whatever the control raises
reaches the caller unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from labcoat.core.models import Result


class LabcoatError(Exception):
    """Base exception for Labcoat errors."""


class BehaviorAlreadyExists(LabcoatError):
    """Raised when a behavior name is registered twice."""

    def __init__(self, name: str):
        super().__init__(f"behavior already exists: {name}")
        self.name = name


class ControlDoesNotExist(LabcoatError):
    """Raised when an experiment runs without a control behavior."""

    def __init__(self) -> None:
        super().__init__(
            "control behavior doesn't exist. Call experiment.use to set the control"
        )


class RecoveredFromBadBehavior(LabcoatError):
    """
    A behavior raised while it was being observed.

    The raised exception is kept untouched in ``value`` (and as
    ``__cause__``) so it can be inspected after the run.
    """

    def __init__(self, name: str, value: Any):
        super().__init__(f"recover from bad behavior {name}: {value!r}")
        self.name = name
        self.value = value
        if isinstance(value, BaseException):
            self.__cause__ = value


class MismatchError(LabcoatError):
    """Raised in strict mode when candidates don't match the control."""

    def __init__(self, result: Result):
        super().__init__(
            f"experiment '{result.name}' has {len(result.mismatches)} mismatched results"
        )
        self.result = result
