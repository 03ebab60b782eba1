#!/usr/bin/env python3
"""Statistics and the plain-text report for a finished sieve run."""

from typing import NamedTuple

import numpy as np

TOP_N = 10


class PrimeStats(NamedTuple):
    count: int
    total: int
    top: tuple


def aggregate(table: np.ndarray, limit: int, top_n: int = TOP_N) -> PrimeStats:
    """
    Count and sum the primes in table[0..limit] and pick the top_n largest.

    The largest primes come back in ascending order. When fewer than top_n
    primes exist, `top` is simply shorter.
    """
    primes = np.flatnonzero(table[: limit + 1])
    count = int(primes.size)
    total = int(primes.sum(dtype=np.int64))
    top = tuple(int(p) for p in primes[-top_n:])
    return PrimeStats(count, total, top)


def format_elapsed(seconds: float) -> str:
    """HH:MM:SS.CC with truncated centiseconds."""
    millis = int(seconds * 1000)
    secs, millis = divmod(millis, 1000)
    mins, secs = divmod(secs, 60)
    hours, mins = divmod(mins, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}.{millis // 10:02d}"


def write_report(path, elapsed: float, stats: PrimeStats):
    # "w" recreates the file, so nothing from an earlier run survives
    with open(path, "w") as f:
        f.write(f"Execution Time - {format_elapsed(elapsed)}\n")
        f.write(f"Primes Found - {stats.count}\n")
        f.write(f"Sum of all Primes - {stats.total}\n")
        f.write("Top Ten Biggest Primes: \n")
        for p in stats.top:
            f.write(f"{p}\n")
