"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Coalescing dispatcher: one underlying execution per set of equivalent in-flight calls.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .context import InvocationContext, InvocationOutcome, InvocationView
from .errors import BatchingConfigError, InvalidOperationError
from .hooks import emit_finish, emit_start, operation_name
from .options import BatchOptions
from .registry import InvocationRegistry

logger = logging.getLogger("batching.engine")

_LOG_KEYS = frozenset({"log_start", "log_finish"})


@dataclass(frozen=True, slots=True)
class BatchStats:
    """Counters describing one engine's activity since construction."""

    invocations: int = 0
    joins: int = 0
    failures: int = 0
    in_flight: int = 0


class Batch:
    """
    Coalesce concurrent calls that share an operation and equal arguments.

    A call made while an equal call is still pending joins it instead of
    starting new work; every joined caller receives the same value or the
    same exception. Nothing is retained once an invocation settles.

    Engines are independent: each owns its registry, lock and options.
    """

    def __init__(
        self,
        options: BatchOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> None:
        self._options = BatchOptions.build(options, **overrides)
        self._policy = self._options.equality_policy()
        self._registry = InvocationRegistry()
        self._lock = threading.RLock()
        self._invocations = 0
        self._joins = 0
        self._failures = 0

    @property
    def options(self) -> BatchOptions:
        return self._options

    def __call__(
        self,
        operation: Callable[..., Any],
        args: Sequence[Any] = (),
        call_context: Any = None,
    ) -> asyncio.Future[Any]:
        return self.invoke(operation, args, call_context)

    def invoke(
        self,
        operation: Callable[..., Any],
        args: Sequence[Any] = (),
        call_context: Any = None,
    ) -> asyncio.Future[Any]:
        """
        Request `operation(*args)`, sharing any equal call still in flight.

        When `call_context` is given the operation runs as
        `operation(call_context, *args)`. Must be called with a running event
        loop; the returned future belongs to that loop.

        Raises:
            InvalidOperationError: `operation` is not callable or not hashable.
        """
        _ensure_invokable(operation)
        parameters = tuple(args)
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[Any] = loop.create_future()

        with self._lock:
            context = self._registry.find_match(
                operation, parameters, call_context, self._policy
            )
            if context is not None:
                context.add_waiter(waiter)
                self._joins += 1
                return waiter
            context = InvocationContext(parameters, call_context, waiter)
            self._registry.register(operation, context)
            self._invocations += 1

        emit_start(self._options.log_start, operation, context.view())
        context.task = loop.create_task(self._execute(operation, context))
        context.task.add_done_callback(
            functools.partial(self._on_task_done, operation, context)
        )
        return waiter

    def wrap(
        self,
        operation: Callable[..., Any],
        call_context: Any = None,
    ) -> Callable[..., asyncio.Future[Any]]:
        """Return a reusable coalesced version of `operation`."""
        _ensure_invokable(operation)

        @functools.wraps(operation)
        def batched(*args: Any) -> asyncio.Future[Any]:
            return self.invoke(operation, args, call_context)

        return batched

    def configure(
        self,
        options: BatchOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> None:
        """Replace option values; affects lookups and hooks from now on."""
        updated = self._options.merge(options, **overrides)
        with self._lock:
            self._options = updated
            self._policy = updated.equality_policy()

    def set_log(self, options: bool | Mapping[str, Any]) -> None:
        """
        Toggle or replace the diagnostics hooks.

        `True`/`False` switch both built-in loggers; a mapping replaces only
        the `log_start`/`log_finish` keys it contains.
        """
        if isinstance(options, bool):
            self.configure(log_start=options, log_finish=options)
            return
        if not isinstance(options, Mapping):
            raise BatchingConfigError(
                f"set_log expects a bool or mapping, but received {options!r}"
            )
        unknown = set(options) - _LOG_KEYS
        if unknown:
            raise BatchingConfigError(
                f"Unknown log option(s): {', '.join(sorted(map(str, unknown)))}"
            )
        self.configure(dict(options))

    def pending(
        self, operation: Callable[..., Any] | None = None
    ) -> tuple[InvocationView, ...]:
        """Snapshot of in-flight invocations, optionally for one operation."""
        with self._lock:
            if operation is None:
                return tuple(context.view() for context in self._registry)
            return tuple(
                context.view() for context in self._registry.pending(operation)
            )

    def stats(self) -> BatchStats:
        with self._lock:
            return BatchStats(
                invocations=self._invocations,
                joins=self._joins,
                failures=self._failures,
                in_flight=len(self._registry),
            )

    async def _execute(
        self, operation: Callable[..., Any], context: InvocationContext
    ) -> None:
        try:
            if context.call_context is None:
                result = operation(*context.parameters)
            else:
                result = operation(context.call_context, *context.parameters)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            outcome = InvocationOutcome.failure(exc)
        else:
            outcome = InvocationOutcome.success(result)
        self._finish(operation, context, outcome)

    def _on_task_done(
        self,
        operation: Callable[..., Any],
        context: InvocationContext,
        task: asyncio.Task[None],
    ) -> None:
        # Reached unsettled only when the task was cancelled or died on a
        # BaseException; waiters must still be released.
        if context.settled:
            return
        if task.cancelled():
            error: BaseException = asyncio.CancelledError()
        else:
            error = task.exception() or asyncio.CancelledError()
        self._finish(operation, context, InvocationOutcome.failure(error))

    def _finish(
        self,
        operation: Callable[..., Any],
        context: InvocationContext,
        outcome: InvocationOutcome,
    ) -> None:
        with self._lock:
            self._registry.remove(operation, context)
            waiters = context.settle(outcome)
            if not outcome.ok:
                self._failures += 1

        for waiter in waiters:
            _deliver(waiter, outcome)

        logger.debug(
            "Settled %s() for %d waiter(s) (ok=%s)",
            operation_name(operation),
            len(waiters),
            outcome.ok,
        )
        emit_finish(
            self._options.log_finish,
            operation,
            context.view(),
            outcome.error,
            outcome.value,
        )


def _ensure_invokable(operation: Any) -> None:
    if not callable(operation):
        raise InvalidOperationError(
            f"operation expects a callable, but received {operation!r}"
        )
    try:
        hash(operation)
    except TypeError as exc:
        raise InvalidOperationError(
            f"operation must be hashable to be coalesced: {operation!r}"
        ) from exc


def _deliver(waiter: asyncio.Future[Any], outcome: InvocationOutcome) -> None:
    loop = waiter.get_loop()
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None
    if loop is running:
        _resolve(waiter, outcome)
        return
    if loop.is_closed():
        logger.warning("Dropping outcome for a waiter whose event loop is closed")
        return
    loop.call_soon_threadsafe(_resolve, waiter, outcome)


def _resolve(waiter: asyncio.Future[Any], outcome: InvocationOutcome) -> None:
    if waiter.done():
        return
    if outcome.error is None:
        waiter.set_result(outcome.value)
    elif isinstance(outcome.error, Exception):
        waiter.set_exception(outcome.error)
    else:
        waiter.cancel()
