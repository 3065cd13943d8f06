#!/usr/bin/env python3
"""
Coalescing benchmark: underlying calls saved and caller latency.

Usage examples:
  PYTHONPATH=src python scripts/coalescing_benchmark.py
  PYTHONPATH=src python scripts/coalescing_benchmark.py --num-calls 5000 --distinct-keys 50 --waves 4
"""

from __future__ import annotations

import argparse
import asyncio
import random
import statistics
import time

from batching import Batch


async def run_benchmark(
    *,
    num_calls: int,
    distinct_keys: int,
    waves: int,
    latency_ms: float,
    jitter_ms: float,
) -> None:
    engine = Batch()
    executions = 0
    latencies: list[float] = []

    async def backend_lookup(key: int) -> int:
        nonlocal executions
        executions += 1
        delay_ms = latency_ms + random.uniform(0.0, jitter_ms)
        await asyncio.sleep(delay_ms / 1000.0)
        return key * 2

    async def caller(key: int) -> int:
        started = time.perf_counter()
        value = await engine(backend_lookup, [key])
        latencies.append(time.perf_counter() - started)
        return value

    per_wave = max(1, num_calls // max(1, waves))
    started = time.perf_counter()
    for _ in range(waves):
        keys = [random.randrange(distinct_keys) for _ in range(per_wave)]
        results = await asyncio.gather(*(caller(key) for key in keys))
        if results != [key * 2 for key in keys]:
            raise RuntimeError("coalesced results diverged from direct results")
    elapsed = time.perf_counter() - started

    stats = engine.stats()
    total_calls = per_wave * waves
    saved = total_calls - executions
    p50 = statistics.median(latencies) if latencies else 0.0
    p95 = sorted(latencies)[int(0.95 * (len(latencies) - 1))] if latencies else 0.0

    print(f"calls={total_calls}")
    print(f"distinct_keys={distinct_keys}")
    print(f"waves={waves}")
    print(f"executions={executions}")
    print(f"joins={stats.joins}")
    print(f"saved_ratio={saved / total_calls if total_calls else 0.0:.3f}")
    print(f"elapsed_s={elapsed:.3f}")
    print(f"caller_latency_p50_ms={p50 * 1000:.2f}")
    print(f"caller_latency_p95_ms={p95 * 1000:.2f}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Request coalescing benchmark")
    parser.add_argument("--num-calls", type=int, default=1000)
    parser.add_argument("--distinct-keys", type=int, default=20)
    parser.add_argument("--waves", type=int, default=5)
    parser.add_argument("--latency-ms", type=float, default=20.0)
    parser.add_argument("--jitter-ms", type=float, default=10.0)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(
        run_benchmark(
            num_calls=args.num_calls,
            distinct_keys=args.distinct_keys,
            waves=args.waves,
            latency_ms=args.latency_ms,
            jitter_ms=args.jitter_ms,
        )
    )


if __name__ == "__main__":
    main()
