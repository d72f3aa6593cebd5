"""
Console reporting for experiment results.

Renders results as rich tables, handy when trying an experiment out
locally or from a test session.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table

from labcoat.core.experiment import Experiment
from labcoat.core.models import CONTROL_NAME, Observation, Result


def render_result(result: Result) -> Table:
    """Build a table with one row per behavior of a result."""
    mismatched = {id(o) for o in result.mismatches}
    ignored = {id(o) for o in result.ignored}

    status = "[green]matched[/green]" if result.matches() else "[red]diverged[/red]"
    table = Table(
        title=f"Experiment: {result.name} ({status})",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Behavior", style="cyan")
    table.add_column("Outcome")
    table.add_column("Duration", justify="right")
    table.add_column("Value")
    table.add_column("Error", style="red")

    def add_row(observation: Observation, outcome: str) -> None:
        exc = observation.exception
        table.add_row(
            "control" if observation.name == CONTROL_NAME else observation.name,
            outcome,
            f"{observation.duration_ms:.1f}ms",
            repr(observation.value),
            f"{type(exc).__name__}: {exc}" if exc is not None else "",
        )

    add_row(result.control, "[bold]control[/bold]")
    for candidate in result.candidates:
        if id(candidate) in mismatched:
            outcome = "[red]mismatched[/red]"
        elif id(candidate) in ignored:
            outcome = "[yellow]ignored[/yellow]"
        else:
            outcome = "[green]matched[/green]"
        add_row(candidate, outcome)

    return table


class ConsoleExperiment(Experiment):
    """Experiment that prints every result to the console."""

    def __init__(self, name: str | None = None, console: Console | None = None):
        super().__init__(name)
        self.console = console or Console(stderr=True)

    def publish(self, context: Any, result: Result) -> None:
        self.console.print(render_result(result))
