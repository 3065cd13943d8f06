"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Invocation context: one in-flight execution shared by every caller that joins it.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

from .errors import InvocationSettledError


@dataclass(frozen=True, slots=True)
class InvocationOutcome:
    """Settled result of one invocation: a value or an error, never both."""

    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "InvocationOutcome":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "InvocationOutcome":
        return cls(error=error)


@dataclass(frozen=True, slots=True)
class InvocationView:
    """Read-only snapshot of an invocation context, handed to hooks."""

    parameters: tuple[Any, ...]
    call_context: Any
    started_at_s: float
    finished_at_s: float | None
    waiter_count: int
    outcome: InvocationOutcome | None

    @property
    def duration_ms(self) -> float | None:
        if self.finished_at_s is None:
            return None
        return (self.finished_at_s - self.started_at_s) * 1000.0


class InvocationContext:
    """
    Mutable record of one pending invocation.

    Waiters are appended while pending; `settle` freezes the waiter list and
    records the outcome exactly once. Callers are expected to hold the owning
    engine's lock around `add_waiter` and `settle`.
    """

    __slots__ = (
        "parameters",
        "call_context",
        "started_at_s",
        "finished_at_s",
        "task",
        "_waiters",
        "_outcome",
    )

    def __init__(
        self,
        parameters: tuple[Any, ...],
        call_context: Any,
        waiter: asyncio.Future[Any],
    ) -> None:
        self.parameters = parameters
        self.call_context = call_context
        self.started_at_s = time.time()
        self.finished_at_s: float | None = None
        self.task: asyncio.Task[None] | None = None
        self._waiters: list[asyncio.Future[Any]] = [waiter]
        self._outcome: InvocationOutcome | None = None

    @property
    def settled(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> InvocationOutcome | None:
        return self._outcome

    @property
    def waiters(self) -> tuple[asyncio.Future[Any], ...]:
        return tuple(self._waiters)

    def add_waiter(self, waiter: asyncio.Future[Any]) -> None:
        if self._outcome is not None:
            raise InvocationSettledError(
                "Cannot join an invocation that has already settled"
            )
        self._waiters.append(waiter)

    def settle(self, outcome: InvocationOutcome) -> tuple[asyncio.Future[Any], ...]:
        """Record `outcome` and return the frozen waiters in join order."""
        if self._outcome is not None:
            raise InvocationSettledError("Invocation context already settled")
        self._outcome = outcome
        self.finished_at_s = time.time()
        return tuple(self._waiters)

    def view(self) -> InvocationView:
        return InvocationView(
            parameters=self.parameters,
            call_context=self.call_context,
            started_at_s=self.started_at_s,
            finished_at_s=self.finished_at_s,
            waiter_count=len(self._waiters),
            outcome=self._outcome,
        )
