"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Registry of pending invocation contexts keyed by operation identity.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Any

from .context import InvocationContext
from .equality import EqualityPolicy


class InvocationRegistry:
    """
    Operation identity -> pending contexts, in arrival order.

    Not synchronized; the owning engine serializes access. Contexts are
    located and removed by reference so that out-of-order settlement of
    sibling contexts can never remove the wrong entry.
    """

    def __init__(self) -> None:
        self._rows: dict[Hashable, list[InvocationContext]] = {}

    def find_match(
        self,
        identity: Hashable,
        parameters: tuple[Any, ...],
        call_context: Any,
        policy: EqualityPolicy,
    ) -> InvocationContext | None:
        """Return the earliest pending context equal to the candidate call."""
        for context in self._rows.get(identity, ()):
            if policy.matches(
                parameters, call_context, context.parameters, context.call_context
            ):
                return context
        return None

    def register(self, identity: Hashable, context: InvocationContext) -> None:
        self._rows.setdefault(identity, []).append(context)

    def remove(self, identity: Hashable, context: InvocationContext) -> bool:
        """
        Remove exactly `context` from `identity`'s row.

        Drops the identity entirely once its row is empty. Returns whether the
        context was found.
        """
        row = self._rows.get(identity)
        if row is None:
            return False
        for index, candidate in enumerate(row):
            if candidate is context:
                del row[index]
                break
        else:
            return False
        if not row:
            del self._rows[identity]
        return True

    def pending(self, identity: Hashable) -> tuple[InvocationContext, ...]:
        return tuple(self._rows.get(identity, ()))

    def __iter__(self) -> Iterator[InvocationContext]:
        for row in self._rows.values():
            yield from row

    def __len__(self) -> int:
        return sum(len(row) for row in self._rows.values())
