# mazeforge/core/rng.py
"""Single seeded random stream shared by every generation phase."""
from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


def fresh_seed() -> int:
    """Draw a new 32-bit seed from the global entropy source."""
    return random.randrange(2**32)


class SeededRNG:
    def __init__(self, seed: Optional[int] = None):
        self._seed = seed if seed is not None else fresh_seed()
        self._rng = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def range(self, min_val: float, max_val: float) -> float:
        return self._rng.uniform(min_val, max_val)

    def below(self, n: int) -> int:
        """Uniform integer in ``[0, n)``."""
        return self._rng.randrange(n)

    def next_float(self) -> float:
        return self._rng.random()

    def choice(self, seq: Sequence[T]) -> Optional[T]:
        if not seq:
            return None
        return seq[self.below(len(seq))]
