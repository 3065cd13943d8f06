"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

In-flight request coalescing for asyncio.

Example:

    import batching

    store = await batching.batch(find_one_store, [{"id": 10010}])

    # bound to a receiver
    store = await batching.batch(StoreModel.find_one, [{"id": 10010}], store_model)

The module-level `batch` is a default engine configured from the environment;
create independent engines with `Batch(...)`.
"""

from .context import InvocationOutcome, InvocationView
from .engine import Batch, BatchStats
from .equality import EqualityPolicy, deep_equal
from .errors import (
    BatchingConfigError,
    BatchingError,
    InvalidOperationError,
    InvocationSettledError,
)
from .options import BatchOptions

batch = Batch(BatchOptions.from_env())

invoke = batch.invoke
wrap = batch.wrap
configure = batch.configure
set_log = batch.set_log

__all__ = [
    "Batch",
    "BatchOptions",
    "BatchStats",
    "EqualityPolicy",
    "InvocationOutcome",
    "InvocationView",
    "BatchingError",
    "BatchingConfigError",
    "InvalidOperationError",
    "InvocationSettledError",
    "batch",
    "configure",
    "deep_equal",
    "invoke",
    "set_log",
    "wrap",
]
