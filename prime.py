#!/usr/bin/env python3
import argparse

import numpy as np


def prime_table(limit: int) -> np.ndarray:
    """Sieve of Eratosthenes: boolean table where table[n] is True when n is prime."""
    is_prime = np.ones(limit + 1, dtype=bool)
    is_prime[:2] = False
    p = 2
    while p * p <= limit:
        if is_prime[p]:
            is_prime[p * p : limit + 1 : p] = False
        p += 1
    return is_prime


def main():
    ap = argparse.ArgumentParser(description="Reference Sieve of Eratosthenes.")
    ap.add_argument("--limit", type=int, default=1_000_000, help="Find all primes <= LIMIT.")
    args = ap.parse_args()

    print(f"Calculating all prime numbers up to {args.limit}...")
    primes = np.flatnonzero(prime_table(args.limit))

    print(f"Found {len(primes)} prime numbers.")
    print(f"The last 10 primes are: {primes[-10:].tolist()}")


if __name__ == "__main__":
    main()
