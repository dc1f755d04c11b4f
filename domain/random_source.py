from __future__ import annotations

from typing import Protocol


class RandomSource(Protocol):
    """
    The only non-deterministic dependency of the games.

    `random.Random` (and `random.SystemRandom`) satisfy this protocol; tests
    pass a scripted implementation instead.
    """

    def random(self) -> float:
        """Return a float uniformly distributed on [0, 1)."""

        ...

    def randint(self, a: int, b: int) -> int:
        """Return an integer uniformly distributed on [a, b], both inclusive."""

        ...
