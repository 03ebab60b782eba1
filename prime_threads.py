#!/usr/bin/env python3

import argparse
import os
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import numpy as np

from prime import prime_table
from prime_report import aggregate, format_elapsed, write_report

# Sum of all primes below 2**32 still fits in an int64 accumulator
MAX_LIMIT = 2 ** 32


class ConfigError(ValueError):
    """Raised for run settings that cannot produce a valid sieve."""


class VerificationError(RuntimeError):
    """Raised when the threaded table disagrees with the reference sieve."""


@dataclass(frozen=True)
class SieveConfig:
    limit: int
    workers: int
    output: str = "./primes.txt"
    processes: bool = False
    verify: bool = False

    def __post_init__(self):
        if self.workers < 1:
            raise ConfigError(f"worker count must be >= 1, got {self.workers}")
        if self.limit < 5:
            raise ConfigError(f"limit must be >= 5, got {self.limit}")
        if self.limit > MAX_LIMIT:
            raise ConfigError(f"limit must be <= {MAX_LIMIT}, got {self.limit}")

    @property
    def upper_bound(self) -> int:
        # n and n + 2 are tested together, so pad the working range by 2
        return self.limit + 2


# Trial division for n >= 5 of the form 6k +- 1

def is_prime(n: int) -> bool:
    """Return True when n is prime. Only valid for n >= 5 coprime to 6."""
    i = 5
    while i * i <= n:
        if n % i == 0 or n % (i + 2) == 0:
            return False
        i += 6
    return True


def partition_starts(worker_index: int, total_workers: int, upper_bound: int) -> range:
    """Multiples of 6 handled by one worker: 6j, 6j + 6W, 6j + 12W, ..."""
    return range(6 * worker_index, upper_bound, 6 * total_workers)


def owned_candidates(worker_index: int, total_workers: int, upper_bound: int) -> list[int]:
    """Every index a worker tests, i.e. n - 1 and n + 1 for each of its starts."""
    owned = []
    for n in partition_starts(worker_index, total_workers, upper_bound):
        owned.extend((n - 1, n + 1))
    return owned


def run_partition(worker_index: int, total_workers: int, upper_bound: int) -> np.ndarray:
    """
    Worker: test the 6k +- 1 candidates owned by worker_index (1..total_workers).

    All primes >= 5 sit right below or above a multiple of 6. Starting points
    are staggered by 6 per worker and the loop advances by 6 * total_workers,
    so workers cover disjoint, interleaved candidates with no coordination.
    Returns a private buffer of length upper_bound + 1 where every position
    the worker does not own is False.
    """
    flags = np.zeros(upper_bound + 1, dtype=bool)

    if 6 * worker_index >= upper_bound:
        return flags

    for n in owned_candidates(worker_index, total_workers, upper_bound):
        flags[n] = is_prime(n)
    return flags


def merge(partials, total_workers: int, upper_bound: int) -> np.ndarray:
    """
    Combine the per-worker buffers into one table.

    The worker strides are re-derived here, so every position is read from
    the single buffer that owns it rather than OR-ing all buffers together.
    """
    combined = np.zeros(upper_bound + 1, dtype=bool)
    step = 6 * total_workers
    for worker_index, part in enumerate(partials, start=1):
        first = 6 * worker_index
        if first >= upper_bound:
            continue
        # n - 1 for n in range(first, upper_bound, step)
        below = slice(first - 1, upper_bound - 1, step)
        # n + 1 for the same n
        above = slice(first + 1, upper_bound + 1, step)
        combined[below] = part[below]
        combined[above] = part[above]

    # 2 and 3 are never handed to is_prime
    combined[2] = True
    combined[3] = True
    return combined


def dispatch(upper_bound: int, workers: int, processes: bool = False) -> list:
    """
    Run one partition per worker in parallel and wait for all of them.

    Returns the private buffers ordered by worker index.
    """
    parts = [None] * workers
    executor_cls = ProcessPoolExecutor if processes else ThreadPoolExecutor

    with executor_cls(max_workers=workers) as executor:
        futures = {
            executor.submit(run_partition, idx, workers, upper_bound): idx
            for idx in range(1, workers + 1)
        }
        # Store by worker index, not completion order
        for fut in as_completed(futures):
            parts[futures[fut] - 1] = fut.result()

    return parts


def sieve(upper_bound: int, workers: int, processes: bool = False) -> np.ndarray:
    """Run one partition per worker in parallel and merge the results."""
    parts = dispatch(upper_bound, workers, processes)
    return merge(parts, workers, upper_bound)


def verify(table: np.ndarray, limit: int):
    """Compare the threaded table against the reference sieve up to limit."""
    reference = prime_table(limit)
    mismatches = np.flatnonzero(table[: limit + 1] != reference)
    if mismatches.size:
        shown = ", ".join(map(str, mismatches[:10].tolist()))
        raise VerificationError(f"{mismatches.size} positions differ from the reference sieve: {shown}")


def run(config: SieveConfig):
    """
    Sieve, aggregate and write the report. Returns (elapsed, stats).

    elapsed covers the parallel phase only; merging, aggregation and the
    report are not timed.
    """
    start = time.perf_counter()
    parts = dispatch(config.upper_bound, config.workers, config.processes)
    elapsed = time.perf_counter() - start

    table = merge(parts, config.workers, config.upper_bound)

    if config.verify:
        verify(table, config.limit)

    stats = aggregate(table, config.limit)
    write_report(config.output, elapsed, stats)
    return elapsed, stats


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Parallel 6k +- 1 trial-division prime sieve.")
    ap.add_argument("--limit", type=int, default=10_000_000,
                    help="Find all primes <= LIMIT (default: 10,000,000).")
    ap.add_argument("--workers", type=int, default=None,
                    help="Number of partitions/workers (default: os.cpu_count()).")
    ap.add_argument("--output", default="./primes.txt",
                    help="Report file, recreated on every run (default: ./primes.txt).")
    ap.add_argument("--processes", action="store_true",
                    help="Run partitions in worker processes instead of threads.")
    ap.add_argument("--verify", action="store_true",
                    help="Cross-check the result against a reference sieve.")
    ap.add_argument("--pause", action="store_true",
                    help="Wait for Enter before exiting.")
    return ap


def main(argv=None):
    ap = build_parser()
    args = ap.parse_args(argv)

    workers = args.workers if args.workers is not None else (os.cpu_count() or 1)
    try:
        config = SieveConfig(
            limit=args.limit,
            workers=workers,
            output=args.output,
            processes=args.processes,
            verify=args.verify,
        )
    except ConfigError as exc:
        ap.error(str(exc))

    mode = "processes" if config.processes else "threads"
    print(f"Calculating all prime numbers up to {config.limit:,} using {config.workers} worker {mode}...")

    elapsed, stats = run(config)

    print(f"Execution time: {format_elapsed(elapsed)}")
    print(f"Found {stats.count:,} prime numbers, sum {stats.total:,}.")
    print(f"The biggest primes are: {list(stats.top)}")
    print(f"Report written to {config.output}")
    print("Done")

    if args.pause:
        input("Press Enter to exit...")


if __name__ == "__main__":
    main()
