"""
Observation recorder.

Invokes a single behavior, times it, and turns anything it raises into an
Observation error so one misbehaving candidate can never take down the
rest of the run.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import inspect
import time
from concurrent.futures import Executor
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from labcoat.core.errors import RecoveredFromBadBehavior
from labcoat.core.models import Behavior, Observation

logger = structlog.get_logger()

# Interpreter and event loop signals. Everything else a behavior raises is
# recorded on its observation.
PROPAGATED = (KeyboardInterrupt, SystemExit, asyncio.CancelledError)


def observe(context: Any, name: str, behavior: Behavior) -> Observation:
    """
    Run a synchronous behavior and record its outcome.

    Args:
        context: Read-only context passed to the behavior
        name: Name the behavior is registered under
        behavior: The callable to run

    Returns:
        Observation with timing, value and contained error
    """
    value: Any = None
    error: RecoveredFromBadBehavior | None = None

    start = datetime.now(timezone.utc)
    started = time.perf_counter()
    try:
        value = behavior(context)
    except PROPAGATED:
        raise
    except BaseException as exc:
        error = _contain(name, exc)
    finally:
        elapsed = time.perf_counter() - started

    return Observation(
        name=name,
        start=start,
        duration=timedelta(seconds=elapsed),
        value=value,
        error=error,
    )


async def observe_async(
    context: Any,
    name: str,
    behavior: Behavior,
    executor: Executor | None = None,
) -> Observation:
    """
    Run a behavior on the event loop and record its outcome.

    Coroutine functions are awaited. Plain callables are called on
    ``executor`` when one is given (with the caller's context variables),
    otherwise inline. Whatever the call returns is awaited if it is
    awaitable, so ``lambda ctx: fetch(ctx)`` records the fetched value.
    """
    value: Any = None
    error: RecoveredFromBadBehavior | None = None

    start = datetime.now(timezone.utc)
    started = time.perf_counter()
    try:
        if executor is None or is_async_behavior(behavior):
            value = behavior(context)
        else:
            loop = asyncio.get_running_loop()
            call = functools.partial(contextvars.copy_context().run, behavior, context)
            value = await loop.run_in_executor(executor, call)
        if inspect.isawaitable(value):
            value = await value
    except PROPAGATED:
        raise
    except BaseException as exc:
        value = None
        error = _contain(name, exc)
    finally:
        elapsed = time.perf_counter() - started

    return Observation(
        name=name,
        start=start,
        duration=timedelta(seconds=elapsed),
        value=value,
        error=error,
    )


def is_async_behavior(behavior: Behavior) -> bool:
    """Whether calling ``behavior`` returns a coroutine without blocking."""
    return inspect.iscoroutinefunction(behavior) or inspect.iscoroutinefunction(
        getattr(behavior, "__call__", None)
    )


def _contain(name: str, exc: BaseException) -> RecoveredFromBadBehavior:
    logger.warning(
        "behavior_raised",
        behavior=name,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return RecoveredFromBadBehavior(name, exc)
