"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error types raised by the coalescing engine.
"""

from __future__ import annotations


class BatchingError(RuntimeError):
    """Base class for errors originating in the engine itself."""


class InvalidOperationError(BatchingError, TypeError):
    """Raised when the requested operation cannot be invoked or keyed."""


class InvocationSettledError(BatchingError):
    """Raised when a settled invocation context is mutated."""


class BatchingConfigError(BatchingError, ValueError):
    """Raised when engine options fail validation."""
