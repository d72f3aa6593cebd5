"""Tests for the observation recorder."""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from labcoat.core.errors import RecoveredFromBadBehavior
from labcoat.core.observer import is_async_behavior, observe, observe_async


class Abort(BaseException):
    """Raised by a behavior that bails out without an Exception."""


class TestObserve:
    """Tests for observe()."""

    def test_records_value(self):
        obs = observe({}, "candidate", lambda ctx: "value")
        assert obs.name == "candidate"
        assert obs.value == "value"
        assert obs.error is None

    def test_passes_context(self):
        obs = observe({"user": "octocat"}, "candidate", lambda ctx: ctx["user"])
        assert obs.value == "octocat"

    def test_records_duration(self):
        def slow(ctx):
            time.sleep(0.05)
            return True

        obs = observe({}, "slow", slow)
        assert obs.duration >= timedelta(milliseconds=40)
        assert obs.start.tzinfo is not None

    def test_contains_exception(self):
        boom = RuntimeError("oh no!")

        def bad(ctx):
            raise boom

        obs = observe({}, "bad", bad)
        assert isinstance(obs.error, RecoveredFromBadBehavior)
        assert obs.error.name == "bad"
        assert obs.error.value is boom
        assert obs.exception is boom
        assert obs.value is None

    def test_duration_recorded_on_failure(self):
        def slow_failure(ctx):
            time.sleep(0.05)
            raise ValueError("late")

        obs = observe({}, "slow", slow_failure)
        assert obs.failed
        assert obs.duration >= timedelta(milliseconds=40)

    def test_base_exception_contained(self):
        def abort(ctx):
            raise Abort()

        obs = observe({}, "abort", abort)
        assert isinstance(obs.exception, Abort)
        assert obs.value is None

    @pytest.mark.parametrize("signal", [KeyboardInterrupt, SystemExit])
    def test_interpreter_signals_propagate(self, signal):
        def interrupted(ctx):
            raise signal()

        with pytest.raises(signal):
            observe({}, "interrupted", interrupted)


class TestObserveAsync:
    """Tests for observe_async()."""

    @pytest.mark.asyncio
    async def test_records_value(self):
        async def behavior(ctx):
            await asyncio.sleep(0)
            return ctx["n"] * 2

        obs = await observe_async({"n": 21}, "double", behavior)
        assert obs.value == 42
        assert obs.error is None

    @pytest.mark.asyncio
    async def test_contains_exception(self):
        async def behavior(ctx):
            raise KeyError("missing")

        obs = await observe_async({}, "bad", behavior)
        assert isinstance(obs.error, RecoveredFromBadBehavior)
        assert isinstance(obs.exception, KeyError)

    @pytest.mark.asyncio
    async def test_records_duration(self):
        async def behavior(ctx):
            await asyncio.sleep(0.05)

        obs = await observe_async({}, "slow", behavior)
        assert obs.duration >= timedelta(milliseconds=40)

    @pytest.mark.asyncio
    async def test_awaits_returned_awaitable(self):
        async def fetch(ctx):
            return 42

        obs = await observe_async({}, "fetch", lambda ctx: fetch(ctx))
        assert obs.value == 42

    @pytest.mark.asyncio
    async def test_runs_plain_callable_on_executor(self):
        threads = []

        def behavior(ctx):
            threads.append(threading.current_thread().name)
            return "done"

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="worker") as executor:
            obs = await observe_async({}, "sync", behavior, executor)

        assert obs.value == "done"
        assert threads[0].startswith("worker")

    @pytest.mark.asyncio
    async def test_base_exception_contained(self):
        async def behavior(ctx):
            raise Abort()

        obs = await observe_async({}, "abort", behavior)
        assert isinstance(obs.exception, Abort)

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        async def behavior(ctx):
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await observe_async({}, "cancelled", behavior)


class TestIsAsyncBehavior:
    """Tests for is_async_behavior()."""

    def test_coroutine_function(self):
        async def behavior(ctx):
            return 1

        assert is_async_behavior(behavior)

    def test_async_callable_object(self):
        class Behavior:
            async def __call__(self, ctx):
                return 1

        assert is_async_behavior(Behavior())

    def test_plain_callable(self):
        assert not is_async_behavior(lambda ctx: 1)
