"""
Core data models for Labcoat.

Observations record one behavior invocation; a Result groups the
observations of one experiment run and says how each candidate compared
against the control.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Union

from labcoat.core.errors import RecoveredFromBadBehavior

# Reserved registry name for the control behavior.
CONTROL_NAME = "__control__"

Behavior = Callable[[Any], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class Observation:
    """Outcome of executing a single behavior."""

    name: str
    start: datetime
    duration: timedelta
    value: Any = None
    error: RecoveredFromBadBehavior | None = None

    @property
    def is_control(self) -> bool:
        return self.name == CONTROL_NAME

    @property
    def failed(self) -> bool:
        """Whether the behavior raised."""
        return self.error is not None

    @property
    def exception(self) -> BaseException | None:
        """The exception the behavior raised, exactly as it was raised."""
        if self.error is None:
            return None
        return self.error.value

    @property
    def duration_ms(self) -> float:
        return self.duration.total_seconds() * 1000

    def to_dict(self) -> dict[str, Any]:
        exc = self.exception
        return {
            "name": self.name,
            "start": self.start.isoformat(),
            "duration_ms": round(self.duration_ms, 3),
            "value": repr(self.value),
            "error": f"{type(exc).__name__}: {exc}" if exc is not None else None,
        }


@dataclass(frozen=True)
class Result:
    """
    Result of an experiment run.

    Every candidate is either matched (in neither list), ignored, or
    mismatched. The order of ``candidates`` follows completion of the
    concurrent fan-out, so it is not the registration order.
    """

    name: str
    control: Observation
    candidates: tuple[Observation, ...] = ()
    mismatches: tuple[Observation, ...] = ()
    ignored: tuple[Observation, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def matches(self) -> bool:
        """True when there are no mismatched and no ignored candidates."""
        return not self.mismatches and not self.ignored

    @property
    def matched(self) -> tuple[Observation, ...]:
        """Candidates that compared equal to the control."""
        unmatched = {id(o) for o in (*self.mismatches, *self.ignored)}
        return tuple(o for o in self.candidates if id(o) not in unmatched)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "matches": self.matches(),
            "control": self.control.to_dict(),
            "candidates": [c.to_dict() for c in self.candidates],
            "mismatches": [m.name for m in self.mismatches],
            "ignored": [i.name for i in self.ignored],
            "created_at": self.created_at.isoformat(),
        }
