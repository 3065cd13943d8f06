"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Structural equality used to decide whether two calls may share one invocation.
"""

from __future__ import annotations

import dataclasses
import inspect
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from numbers import Number
from typing import Any

EqualityPredicate = Callable[[Any, Any], bool]


def deep_equal(a: Any, b: Any) -> bool:
    """
    Compare two values structurally.

    Mappings, lists, tuples, dataclasses, exceptions (type and args) and plain
    attribute bags are walked recursively; callables and other values fall
    back to `==`. `NaN` equals `NaN` and cyclic structures terminate.
    Inputs are never mutated.
    """
    return _equal(a, b, set())


def _equal(a: Any, b: Any, seen: set[tuple[int, int]]) -> bool:
    if a is b:
        return True

    if _is_number(a) and _is_number(b):
        if _is_nan(a) and _is_nan(b):
            return True
        return bool(a == b)

    if type(a) is not type(b) and not (
        isinstance(a, Mapping) and isinstance(b, Mapping)
    ):
        return False

    pair = (id(a), id(b))
    if pair in seen:
        return True

    # Callables and modules use their own equality: identity for functions,
    # receiver and function for bound methods.
    if callable(a) or inspect.ismodule(a):
        return bool(a == b)

    if isinstance(a, BaseException):
        seen.add(pair)
        return _equal(a.args, b.args, seen) and _equal(vars(a), vars(b), seen)

    if isinstance(a, Mapping):
        if len(a) != len(b) or set(a.keys()) != set(b.keys()):
            return False
        seen.add(pair)
        return all(_equal(a[key], b[key], seen) for key in a)

    if isinstance(a, (list, tuple)):
        if len(a) != len(b):
            return False
        seen.add(pair)
        return all(_equal(x, y, seen) for x, y in zip(a, b))

    if isinstance(a, (set, frozenset)):
        return a == b

    if dataclasses.is_dataclass(a) and not isinstance(a, type):
        seen.add(pair)
        return all(
            _equal(getattr(a, f.name), getattr(b, f.name), seen)
            for f in dataclasses.fields(a)
        )

    if _is_attribute_bag(a):
        seen.add(pair)
        return _equal(vars(a), vars(b), seen)

    return bool(a == b)


def _is_number(value: Any) -> bool:
    return isinstance(value, (Number, Decimal)) and not isinstance(value, bool)


def _is_nan(value: Any) -> bool:
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, Decimal):
        return value.is_nan()
    return False


def _is_attribute_bag(value: Any) -> bool:
    # Objects relying on identity equality are compared by their attributes.
    return type(value).__eq__ is object.__eq__ and hasattr(value, "__dict__")


@dataclass(frozen=True, slots=True)
class EqualityPolicy:
    """Pair of predicates used to match a call against pending invocations."""

    parameters_equal: EqualityPredicate = deep_equal
    contexts_equal: EqualityPredicate = deep_equal

    def matches(
        self,
        parameters: Any,
        call_context: Any,
        other_parameters: Any,
        other_context: Any,
    ) -> bool:
        return bool(
            self.parameters_equal(parameters, other_parameters)
            and self.contexts_equal(call_context, other_context)
        )
