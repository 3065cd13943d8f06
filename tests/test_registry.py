from __future__ import annotations

import asyncio

import pytest

from batching import EqualityPolicy, InvocationOutcome, InvocationSettledError
from batching.context import InvocationContext
from batching.registry import InvocationRegistry


def run_async(coro):
    return asyncio.run(coro)


async def fetch(key):
    return key


async def other(key):
    return key


def _context(*parameters, call_context=None) -> InvocationContext:
    waiter = asyncio.get_running_loop().create_future()
    return InvocationContext(tuple(parameters), call_context, waiter)


def test_find_match_returns_earliest_equal_context():
    async def scenario() -> None:
        registry = InvocationRegistry()
        loose = EqualityPolicy(parameters_equal=lambda a, b: True)
        first, second = _context(1), _context(2)
        registry.register(fetch, first)
        registry.register(fetch, second)

        assert registry.find_match(fetch, (2,), None, EqualityPolicy()) is second
        assert registry.find_match(fetch, (9,), None, loose) is first
        assert registry.find_match(fetch, (3,), None, EqualityPolicy()) is None

    run_async(scenario())


def test_matching_is_scoped_to_operation_identity():
    async def scenario() -> None:
        registry = InvocationRegistry()
        registry.register(fetch, _context("a"))

        assert registry.find_match(other, ("a",), None, EqualityPolicy()) is None
        assert registry.pending(other) == ()
        assert len(registry.pending(fetch)) == 1

    run_async(scenario())


def test_remove_by_reference_in_any_order():
    async def scenario() -> None:
        registry = InvocationRegistry()
        contexts = [_context(n) for n in range(4)]
        for context in contexts:
            registry.register(fetch, context)

        assert registry.remove(fetch, contexts[1])
        assert registry.remove(fetch, contexts[0])
        assert registry.pending(fetch) == (contexts[2], contexts[3])
        assert registry.find_match(fetch, (3,), None, EqualityPolicy()) is contexts[3]

        assert registry.remove(fetch, contexts[3])
        assert registry.pending(fetch) == (contexts[2],)

        assert not registry.remove(fetch, contexts[1])
        assert len(registry) == 1

    run_async(scenario())


def test_identity_is_dropped_once_empty():
    async def scenario() -> None:
        registry = InvocationRegistry()
        only = _context("x")
        registry.register(fetch, only)

        assert registry.pending(fetch) == (only,)
        assert registry.remove(fetch, only)
        assert registry._rows == {}  # noqa: SLF001
        assert len(registry) == 0
        assert not registry.remove(fetch, only)

    run_async(scenario())


def test_context_rejects_mutation_after_settle():
    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        context = _context(1)
        joiner = loop.create_future()
        context.add_waiter(joiner)

        waiters = context.settle(InvocationOutcome.success(2))

        assert len(waiters) == 2 and waiters[1] is joiner
        assert context.settled
        assert context.outcome == InvocationOutcome(value=2)
        assert context.finished_at_s is not None
        with pytest.raises(InvocationSettledError):
            context.add_waiter(loop.create_future())
        with pytest.raises(InvocationSettledError):
            context.settle(InvocationOutcome.failure(RuntimeError("again")))
        assert len(context.waiters) == 2

    run_async(scenario())


def test_view_is_a_snapshot():
    async def scenario() -> None:
        context = _context("a", call_context={"tenant": 1})
        pending_view = context.view()
        context.add_waiter(asyncio.get_running_loop().create_future())
        context.settle(InvocationOutcome.failure(ValueError("boom")))
        settled_view = context.view()

        assert pending_view.waiter_count == 1
        assert pending_view.duration_ms is None
        assert pending_view.outcome is None
        assert settled_view.waiter_count == 2
        assert settled_view.call_context == {"tenant": 1}
        assert settled_view.outcome is not None
        assert not settled_view.outcome.ok
        assert settled_view.duration_ms is not None

    run_async(scenario())
