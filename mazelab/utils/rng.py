"""Process-wide random source for maze carving, shuffling and epsilon-greedy choices."""

import random
import numpy as np
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class SeededRNG:
    """Seedable random number generator; unseeded by default."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)
        self._seed = seed

    @property
    def seed(self) -> Optional[int]:
        """Get the current seed."""
        return self._seed

    def set_seed(self, seed: Optional[int]):
        """Set a new seed."""
        self._seed = seed
        self._rng.seed(seed)

    def random(self) -> float:
        """Generate a random float in [0.0, 1.0)."""
        return self._rng.random()

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        return self._rng.choice(seq)

    def shuffled(self, seq: Sequence[T]) -> list:
        """Return a shuffled copy of the sequence."""
        items = list(seq)
        self._rng.shuffle(items)
        return items

    def choice_among_max(self, values: np.ndarray) -> int:
        """Index of a maximal entry of `values`, ties broken uniformly at random."""
        best = np.flatnonzero(values == values.max())
        return int(self.choice(best))


# Global instance shared by every engine
default_rng = SeededRNG()


def set_global_seed(seed: Optional[int]):
    """Set the seed for the global RNG instance."""
    default_rng.set_seed(seed)

