"""
Experiment engine - runs control and candidates side by side.

Provides:
- Concurrent fan-out to every registered behavior
- Classification of candidates against the control
- Publishing of results
- Control-first return policy, with an opt-in strict mode for tests
"""

from __future__ import annotations

import asyncio
import inspect
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Any

import structlog

from labcoat.core.config import get_settings
from labcoat.core.errors import ControlDoesNotExist, MismatchError
from labcoat.core.experiment import BaseExperiment
from labcoat.core.models import CONTROL_NAME, Observation, Result
from labcoat.core.observer import is_async_behavior, observe_async
from labcoat.utils.logging import experiment_context

logger = structlog.get_logger()


def run(
    experiment: BaseExperiment,
    context: Any = None,
    *,
    error_on_mismatch: bool | None = None,
) -> Any:
    """
    Run an experiment and return the control's outcome.

    Blocking wrapper around :func:`run_async`. It starts its own event loop,
    so from async code await :func:`run_async` instead.
    """
    return asyncio.run(
        run_async(experiment, context, error_on_mismatch=error_on_mismatch)
    )


async def run_async(
    experiment: BaseExperiment,
    context: Any = None,
    *,
    error_on_mismatch: bool | None = None,
) -> Any:
    """
    Run an experiment and return the control's outcome.

    All behaviors run concurrently in random order. The control's value is
    returned, or the exception it raised is re-raised, unless publishing
    fails or strict mode is on and a candidate mismatched.

    Args:
        experiment: The experiment to run
        context: Read-only value passed to every behavior and hook
            (defaults to an empty mapping)
        error_on_mismatch: Raise MismatchError on mismatches. Defaults to
            the ``error_on_mismatch`` setting.

    Returns:
        The control behavior's value

    Raises:
        ControlDoesNotExist: If no control behavior is registered
        MismatchError: In strict mode, if any candidate mismatched
    """
    if context is None:
        context = MappingProxyType({})
    if error_on_mismatch is None:
        error_on_mismatch = get_settings().error_on_mismatch

    control = experiment.control()
    if control is None:
        raise ControlDoesNotExist()

    names = experiment.shuffled_names()

    # Only the control runs when the experiment is off or has no candidates.
    if not await _resolve(experiment.is_enabled(context)) or len(names) == 1:
        result = control(context)
        if inspect.isawaitable(result):
            result = await result
        return result

    # Every event logged during the run, from worker threads too, carries
    # the experiment name.
    with experiment_context(experiment.name):
        logger.debug("experiment_started", candidates=len(names) - 1)

        control_observation, candidates = await _run_behaviors(
            experiment, context, names
        )
        result = await classify(context, experiment, control_observation, candidates)

        logger.debug(
            "experiment_finished",
            matches=result.matches(),
            mismatches=len(result.mismatches),
            ignored=len(result.ignored),
        )

        return await settle(
            context, experiment, result, error_on_mismatch=error_on_mismatch
        )


async def _run_behaviors(
    experiment: BaseExperiment,
    context: Any,
    names: list[str],
) -> tuple[Observation, list[Observation]]:
    """Observe every behavior concurrently and split control from candidates."""
    if CONTROL_NAME not in names:
        raise LookupError(f"control behavior {CONTROL_NAME!r} missing from shuffled names")

    behaviors = [(name, experiment.lookup(name)) for name in names]
    missing = [name for name, behavior in behaviors if behavior is None]
    if missing:
        raise LookupError(f"behaviors not registered: {', '.join(missing)}")

    # One worker thread per synchronous behavior so none of them wait on a
    # shared pool.
    workers = sum(1 for _, behavior in behaviors if not is_async_behavior(behavior))
    with ThreadPoolExecutor(
        max_workers=max(workers, 1), thread_name_prefix="labcoat"
    ) as executor:
        outcomes = await asyncio.gather(
            *(
                observe_async(context, name, behavior, executor)
                for name, behavior in behaviors
            ),
            return_exceptions=True,
        )

    # Only interpreter and loop signals get past the recorder; raise them
    # once every behavior has finished.
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome

    control = next(o for o in outcomes if o.name == CONTROL_NAME)
    candidates = [o for o in outcomes if o.name != CONTROL_NAME]
    return control, candidates


async def classify(
    context: Any,
    experiment: BaseExperiment,
    control: Observation,
    candidates: list[Observation],
) -> Result:
    """
    Bucket each candidate as matched, ignored or mismatched.

    Candidates keep the order they are iterated in; since that order comes
    from a concurrent fan-out it is not stable between runs.
    """
    mismatches: list[Observation] = []
    ignored: list[Observation] = []

    for candidate in candidates:
        if await _resolve(experiment.compare(context, control, candidate)):
            continue
        if await _resolve(experiment.ignore(context, control, candidate)):
            ignored.append(candidate)
        else:
            mismatches.append(candidate)

    return Result(
        name=experiment.name,
        control=control,
        candidates=tuple(candidates),
        mismatches=tuple(mismatches),
        ignored=tuple(ignored),
    )


async def settle(
    context: Any,
    experiment: BaseExperiment,
    result: Result,
    *,
    error_on_mismatch: bool,
) -> Any:
    """
    Publish the result and decide what the caller gets back.

    A publish failure wins over everything else, then a strict-mode
    mismatch, then the control's own outcome.
    """
    try:
        await _resolve(experiment.publish(context, result))
    except Exception as e:
        logger.error(
            "publish_failed",
            experiment=experiment.name,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise

    if error_on_mismatch and result.mismatches:
        raise MismatchError(result)

    if result.control.exception is not None:
        raise result.control.exception
    return result.control.value


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
