"""
Seeded pseudo-random generator for question compilation.

A plain linear-congruential generator:

    state = (state * 9301 + 49297) % 233280
    random() = state / 233280

Only integer arithmetic and a single division are involved, so a given
seed yields the same stream in every process and on every platform.
The ambient ``random`` module is never used for compiled content.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")

MULTIPLIER = 9301
INCREMENT = 49297
MODULUS = 233280


class SeededRandom:
    """Deterministic LCG stream derived from a single integer seed."""

    def __init__(self, seed: int):
        self.seed = seed
        self._state = seed % MODULUS

    def random(self) -> float:
        """Next value in [0, 1)."""
        self._state = (self._state * MULTIPLIER + INCREMENT) % MODULUS
        return self._state / MODULUS

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends inclusive."""
        if high < low:
            raise ValueError(f"empty range [{low}, {high}]")
        return low + int(self.random() * (high - low + 1))

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("cannot choose from an empty sequence")
        return items[int(self.random() * len(items))]

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Fisher-Yates shuffle from the tail; returns a new list."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result
