"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Start/finish diagnostics hooks and the built-in textual loggers.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from .context import InvocationView

logger = logging.getLogger("batching.hooks")

StartHook = Callable[[Callable[..., Any], InvocationView], None]
FinishHook = Callable[
    [Callable[..., Any], InvocationView, BaseException | None, Any], None
]


def operation_name(operation: Callable[..., Any]) -> str:
    return getattr(operation, "__name__", None) or type(operation).__name__


def describe_value(value: Any) -> str:
    try:
        return json.dumps(value, default=repr)
    except (TypeError, ValueError):
        return repr(value)


def describe_context(call_context: Any) -> str:
    if callable(call_context) and hasattr(call_context, "__name__"):
        return f"{operation_name(call_context)}()"
    return describe_value(call_context)


def log_start(operation: Callable[..., Any], view: InvocationView) -> None:
    """Built-in start hook."""
    logger.info(
        "[batch] %s() start, with:\n * ARGS      : %s\n * THIS      : %s",
        operation_name(operation),
        describe_value(view.parameters),
        describe_context(view.call_context),
    )


def log_finish(
    operation: Callable[..., Any],
    view: InvocationView,
    error: BaseException | None,
    result: Any,
) -> None:
    """Built-in finish hook."""
    duration = view.duration_ms or 0.0
    if error is not None:
        logger.info(
            "[batch] %s() finish fail\n * TIME      : %.1fms\n * ARGS      : %s\n"
            " * THIS      : %s\n * CALLBACKS : %d\n * ERROR     : %r",
            operation_name(operation),
            duration,
            describe_value(view.parameters),
            describe_context(view.call_context),
            view.waiter_count,
            error,
        )
        return
    logger.info(
        "[batch] %s() finish successful, with:\n * TIME      : %.1fms\n"
        " * ARGS      : %s\n * THIS      : %s\n * CALLBACKS : %d\n * RESULT    : %s",
        operation_name(operation),
        duration,
        describe_value(view.parameters),
        describe_context(view.call_context),
        view.waiter_count,
        describe_value(result),
    )


def resolve_hook(option: bool | Callable[..., Any], builtin: Callable[..., Any]):
    """Map a hook option to the callable to run, or `None` when disabled."""
    if option is True:
        return builtin
    if not option:
        return None
    return option


def emit_start(
    option: bool | StartHook,
    operation: Callable[..., Any],
    view: InvocationView,
) -> None:
    hook = resolve_hook(option, log_start)
    if hook is None:
        return
    try:
        hook(operation, view)
    except Exception:
        logger.exception("Start hook failed for %s()", operation_name(operation))


def emit_finish(
    option: bool | FinishHook,
    operation: Callable[..., Any],
    view: InvocationView,
    error: BaseException | None,
    result: Any,
) -> None:
    hook = resolve_hook(option, log_finish)
    if hook is None:
        return
    try:
        hook(operation, view, error, result)
    except Exception:
        logger.exception("Finish hook failed for %s()", operation_name(operation))
