#!/usr/bin/env python3
"""
Basic usage examples for Labcoat.

This file demonstrates running an old and a new implementation side by
side, gating an experiment behind a feature flag, and publishing results.
"""

import asyncio
import time

import labcoat
from labcoat import Experiment, MismatchError
from labcoat.experiments import ConsoleExperiment, FeatureFlagExperiment, MetricsExperiment
from labcoat.utils.metrics import ExperimentMetrics


def simple_experiment():
    """Compare a slow control against two candidates."""
    print("\n=== Simple Experiment ===\n")

    experiment = ConsoleExperiment("slow-call")

    @experiment.control_behavior
    def control(ctx):
        time.sleep(0.2)
        return "done"

    experiment.try_("slightly faster call", lambda ctx: "exit")
    experiment.try_("super fast call", lambda ctx: "done")

    value = labcoat.run(experiment)
    print(f"Control returned: {value}")


def with_context():
    """Thread request data through every behavior."""
    print("\n=== Context ===\n")

    users = {42: {"login": "octocat"}}
    experiment = Experiment("user-login")
    experiment.use(lambda ctx: users[ctx["user_id"]]["login"])
    experiment.try_("upper-cased", lambda ctx: users[ctx["user_id"]]["login"].upper())

    login = labcoat.run(experiment, {"user_id": 42})
    print(f"Login: {login}")


def feature_flags():
    """Only run candidates for flagged users."""
    print("\n=== Feature Flags ===\n")

    features = {"new_feature": {1, 2}}
    experiment = FeatureFlagExperiment(features, flag="new_feature")
    experiment.use(lambda ctx: None)
    experiment.try_("new_feature", lambda ctx: None)

    for user_id in (1, 3):
        enabled = experiment.is_enabled({"user_id": user_id})
        labcoat.run(experiment, {"user_id": user_id})
        print(f"user {user_id}: candidates ran={enabled}")


def metrics():
    """Publish durations and outcomes as metrics."""
    print("\n=== Metrics ===\n")

    collector = ExperimentMetrics()
    experiment = MetricsExperiment("pricing", collector=collector)
    experiment.use(lambda ctx: round(19.999, 2))
    experiment.try_("decimal", lambda ctx: 20.0)

    for _ in range(3):
        labcoat.run(experiment)

    summary = collector.get_summary()
    print(f"Runs: {summary['total_runs']}")
    print(f"Outcomes: {summary['outcomes']}")


def strict_mode():
    """Fail on mismatches, as you would in a test suite."""
    print("\n=== Strict Mode ===\n")

    experiment = Experiment("strict")
    experiment.use(lambda ctx: "success")
    experiment.try_("broken", lambda ctx: "fail")

    try:
        labcoat.run(experiment, error_on_mismatch=True)
    except MismatchError as e:
        print(f"{e} -> {[m.name for m in e.result.mismatches]}")


async def async_behaviors():
    """Coroutine behaviors are awaited concurrently."""
    print("\n=== Async Behaviors ===\n")

    async def control(ctx):
        await asyncio.sleep(0.1)
        return [1, 2]

    async def candidate(ctx):
        await asyncio.sleep(0.1)
        return [1, 2]

    experiment = Experiment("async")
    experiment.use(control)
    experiment.try_("candidate", candidate)

    started = time.perf_counter()
    value = await labcoat.run_async(experiment)
    print(f"Value: {value} in {time.perf_counter() - started:.2f}s")


def main():
    labcoat.setup_logging(level="WARNING")
    simple_experiment()
    with_context()
    feature_flags()
    metrics()
    strict_mode()
    asyncio.run(async_behaviors())


if __name__ == "__main__":
    main()
