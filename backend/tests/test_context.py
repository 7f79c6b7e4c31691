"""
Notekeeper Backend: Request Context Unit Tests
===============================================

What:  Deadline arithmetic and run_with_deadline() behavior.
"""

import asyncio

import pytest

from notekeeper.core.context import RequestContext, run_with_deadline
from notekeeper.exceptions import StoreTimeoutError


class TestRequestContext:

    def test_unbounded_context(self):
        ctx = RequestContext.with_timeout(None)

        assert ctx.deadline is None
        assert ctx.remaining() is None
        assert ctx.expired is False

    def test_remaining_counts_down_from_timeout(self):
        ctx = RequestContext.with_timeout(10, request_id="abc")

        assert 9 < ctx.remaining() <= 10
        assert ctx.request_id == "abc"
        assert ctx.expired is False

    def test_zero_timeout_is_expired(self):
        ctx = RequestContext.with_timeout(0)

        assert ctx.expired is True
        assert ctx.remaining() == 0.0

    def test_context_is_immutable(self):
        ctx = RequestContext.with_timeout(1)
        with pytest.raises(AttributeError):
            ctx.deadline = None


class TestRunWithDeadline:

    @pytest.mark.asyncio
    async def test_returns_result_within_deadline(self):
        async def work():
            return 42

        assert await run_with_deadline(RequestContext.with_timeout(1), work(), "work") == 42

    @pytest.mark.asyncio
    async def test_unbounded_context_waits(self):
        async def work():
            await asyncio.sleep(0.01)
            return "done"

        assert await run_with_deadline(RequestContext.with_timeout(None), work(), "work") == "done"

    @pytest.mark.asyncio
    async def test_slow_work_times_out(self):
        with pytest.raises(StoreTimeoutError) as exc_info:
            await run_with_deadline(RequestContext.with_timeout(0.02), asyncio.sleep(1), "sleep")

        assert exc_info.value.operation == "sleep"

    @pytest.mark.asyncio
    async def test_expired_deadline_never_starts_work(self):
        started = False

        async def work():
            nonlocal started
            started = True

        with pytest.raises(StoreTimeoutError):
            await run_with_deadline(RequestContext.with_timeout(0), work(), "work")

        assert started is False

    @pytest.mark.asyncio
    async def test_work_errors_propagate_unchanged(self):
        async def work():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await run_with_deadline(RequestContext.with_timeout(1), work(), "work")
