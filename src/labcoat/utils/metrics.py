"""
Metrics collection for experiment results.

Collects statsd-style timings and counters so published results can be
inspected or forwarded to a monitoring backend.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from labcoat.core.models import Result


@dataclass
class ResultRecord:
    """Summary of a single published result."""

    timestamp: datetime
    experiment: str
    outcome: str
    candidates: int
    mismatches: int
    ignored: int
    control_duration_ms: float


@dataclass
class TimingStats:
    """Aggregated timings for one metric key."""

    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0
    samples: list[float] = field(default_factory=list)

    @property
    def avg_ms(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_ms / self.count


class ExperimentMetrics:
    """
    Thread-safe metrics collector for Labcoat.

    Keys follow ``<prefix>.<experiment>.<behavior>.duration`` for timings
    and ``<prefix>.<experiment>.<outcome>`` for counters.
    """

    def __init__(self, prefix: str = "labcoat", max_history: int = 10000):
        """
        Initialize metrics collector.

        Args:
            prefix: Prefix prepended to every key recorded by record_result
            max_history: Maximum number of results to keep in history
        """
        self.prefix = prefix
        self._lock = Lock()
        self._max_history = max_history
        self._results: list[ResultRecord] = []
        self._counters: dict[str, int] = defaultdict(int)
        self._timings: dict[str, TimingStats] = defaultdict(TimingStats)
        self._start_time = datetime.now(timezone.utc)

    def timing(self, key: str, value_ms: float) -> None:
        """Record a timing sample in milliseconds."""
        with self._lock:
            stats = self._timings[key]
            stats.count += 1
            stats.total_ms += value_ms
            stats.max_ms = max(stats.max_ms, value_ms)
            stats.samples.append(value_ms)
            if len(stats.samples) > self._max_history:
                stats.samples = stats.samples[-self._max_history:]

    def increment(self, key: str, value: int = 1) -> None:
        """Increment a counter."""
        with self._lock:
            self._counters[key] += value

    def record_result(self, result: Result) -> str:
        """
        Record timings and the outcome counter for an experiment result.

        Exactly one of ``matched``, ``ignored`` or ``mismatched`` is
        incremented per result.

        Returns:
            The outcome that was counted
        """
        base = f"{self.prefix}.{result.name}"

        self.timing(f"{base}.control.duration", result.control.duration_ms)
        for candidate in result.candidates:
            name = candidate.name.replace(" ", "_")
            self.timing(f"{base}.{name}.duration", candidate.duration_ms)

        if result.matches():
            outcome = "matched"
        elif result.ignored:
            outcome = "ignored"
        else:
            outcome = "mismatched"
        self.increment(f"{base}.{outcome}")

        with self._lock:
            self._results.append(ResultRecord(
                timestamp=datetime.now(timezone.utc),
                experiment=result.name,
                outcome=outcome,
                candidates=len(result.candidates),
                mismatches=len(result.mismatches),
                ignored=len(result.ignored),
                control_duration_ms=result.control.duration_ms,
            ))
            if len(self._results) > self._max_history:
                self._results = self._results[-self._max_history:]

        return outcome

    def counter(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def get_summary(self) -> dict[str, Any]:
        """
        Get metrics summary.

        Returns:
            Dictionary with counters, timings and run totals
        """
        with self._lock:
            uptime = (datetime.now(timezone.utc) - self._start_time).total_seconds()
            outcomes: dict[str, int] = defaultdict(int)
            for record in self._results:
                outcomes[record.outcome] += 1

            return {
                "uptime_seconds": uptime,
                "total_runs": len(self._results),
                "outcomes": dict(outcomes),
                "counters": dict(self._counters),
                "timings": {
                    key: {
                        "count": stats.count,
                        "avg_ms": stats.avg_ms,
                        "max_ms": stats.max_ms,
                    }
                    for key, stats in self._timings.items()
                },
            }

    def get_recent_results(self, limit: int = 100) -> list[dict[str, Any]]:
        """
        Get recent result history.

        Args:
            limit: Maximum number of results to return

        Returns:
            List of result dictionaries
        """
        with self._lock:
            recent = self._results[-limit:]
            return [
                {
                    "timestamp": r.timestamp.isoformat(),
                    "experiment": r.experiment,
                    "outcome": r.outcome,
                    "candidates": r.candidates,
                    "mismatches": r.mismatches,
                    "ignored": r.ignored,
                    "control_duration_ms": r.control_duration_ms,
                }
                for r in recent
            ]

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self._results.clear()
            self._counters.clear()
            self._timings.clear()
            self._start_time = datetime.now(timezone.utc)


# Global metrics instance
metrics = ExperimentMetrics()
