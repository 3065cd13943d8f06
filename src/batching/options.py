"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Validated engine options and explicit environment loading.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from .equality import EqualityPolicy, deep_equal
from .errors import BatchingConfigError

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}


class BatchOptions(BaseModel):
    """
    Options recognized by one engine instance.

    Attributes:
        log_start: `True` for the built-in start logger, `False` to disable,
            or a callable `(operation, view) -> None`.
        log_finish: `True` for the built-in finish logger, `False` to disable,
            or a callable `(operation, view, error, result) -> None`.
        parameters_equal: Predicate deciding whether two argument tuples match.
        contexts_equal: Predicate deciding whether two call contexts match.

    Both predicates run while the engine holds its lock. The lock is
    reentrant, so reading `stats()` or `pending()` from a predicate is safe;
    starting new calls on the same engine from a predicate is not supported.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    log_start: bool | Callable[..., Any] = False
    log_finish: bool | Callable[..., Any] = False
    parameters_equal: Callable[[Any, Any], bool] = deep_equal
    contexts_equal: Callable[[Any, Any], bool] = deep_equal

    @classmethod
    def build(
        cls,
        options: "BatchOptions | Mapping[str, Any] | None" = None,
        **overrides: Any,
    ) -> "BatchOptions":
        """Resolve options from an instance, a mapping, or defaults."""
        if options is None:
            base: dict[str, Any] = {}
        elif isinstance(options, BatchOptions):
            if not overrides:
                return options
            base = dict(options)
        elif isinstance(options, Mapping):
            base = dict(options)
        else:
            raise BatchingConfigError(
                f"options expects a mapping or BatchOptions, but received {options!r}"
            )
        base.update(overrides)
        try:
            return cls(**base)
        except ValidationError as exc:
            raise BatchingConfigError(str(exc)) from exc

    def merge(
        self,
        options: "BatchOptions | Mapping[str, Any] | None" = None,
        **overrides: Any,
    ) -> "BatchOptions":
        """Return a copy with `options` then `overrides` applied on top."""
        if isinstance(options, BatchOptions):
            return BatchOptions.build(options, **overrides)
        if options is not None and not isinstance(options, Mapping):
            raise BatchingConfigError(
                f"options expects a mapping or BatchOptions, but received {options!r}"
            )
        return BatchOptions.build(dict(self), **{**dict(options or {}), **overrides})

    def equality_policy(self) -> EqualityPolicy:
        return EqualityPolicy(
            parameters_equal=self.parameters_equal,
            contexts_equal=self.contexts_equal,
        )

    @staticmethod
    def from_env() -> "BatchOptions":
        """
        Load logging toggles from environment variables.

        `BATCHING_LOG` sets both hooks; `BATCHING_LOG_START` and
        `BATCHING_LOG_FINISH` override it individually.
        """
        both = _env_flag("BATCHING_LOG", False)
        return BatchOptions(
            log_start=_env_flag("BATCHING_LOG_START", both),
            log_finish=_env_flag("BATCHING_LOG_FINISH", both),
        )


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise BatchingConfigError(f"{name} expects a boolean flag, but received {raw!r}")
