"""
slow_double.py: coalescing a slow API.

Eighteen overlapping calls with only three distinct arguments: without
batching the API runs eighteen times, with batching it runs three times and
every caller still gets its own correct result.

Usage:
    PYTHONPATH=src python examples/slow_double.py
"""

import asyncio
import logging
import random

import batching

logger = logging.getLogger("examples.slow_double")

VALUES = [1, 2, 1, 1, 2, 3, 1, 2, 1, 1, 2, 1, 1, 2, 3, 1, 2, 1]


async def slow_double_api(value):
    logger.info("slow_double_api(%s)", value)
    await asyncio.sleep(random.uniform(0.2, 0.7))
    if not isinstance(value, (int, float)):
        raise TypeError(f"value expects a number, but received {value!r}")
    return value * 2


async def without_batch() -> list[int]:
    return await asyncio.gather(*(slow_double_api(v) for v in VALUES))


async def with_batch() -> list[int]:
    # Later calls with an argument already in flight join the first call.
    return await asyncio.gather(*(batching.batch(slow_double_api, [v]) for v in VALUES))


async def main() -> None:
    batching.set_log(True)
    try:
        print("RESULT (without batch):", await without_batch())
        print("RESULT (with batch):   ", await with_batch())
    except TypeError as exc:
        print(f"ERROR {exc}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    asyncio.run(main())
