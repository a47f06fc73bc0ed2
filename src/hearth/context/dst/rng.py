"""
DeterministicRng - Seeded Random Source

TigerStyle: Simulation code never touches the global random module. Every
component gets its own stream, forked from the run's root RNG.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TypeVar

T = TypeVar("T")


@dataclass
class DeterministicRng:
    """Seeded random number generator with forkable streams."""

    _seed: int
    _rng: random.Random = field(init=False, repr=False)
    _forks_count: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        assert self._seed >= 0, "seed must be non-negative"
        self._rng = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def next_int(self, min_val: int, max_val: int) -> int:
        """Integer in [min_val, max_val], both inclusive."""
        assert min_val <= max_val, f"min_val ({min_val}) must be <= max_val ({max_val})"
        return self._rng.randint(min_val, max_val)

    def next_float(self) -> float:
        """Float in [0.0, 1.0)."""
        return self._rng.random()

    def next_bool(self, probability: float = 0.5) -> bool:
        """True with the given probability."""
        assert 0.0 <= probability <= 1.0, f"probability ({probability}) must be in [0, 1]"
        return self._rng.random() < probability

    def next_amount(self, max_val: int, step: int = 100) -> int:
        """A money amount in [0, max_val] rounded to ``step``."""
        assert max_val >= 0, "max_val must be non-negative"
        assert step > 0, "step must be positive"
        return self.next_int(0, max_val // step) * step

    def choice(self, seq: Sequence[T]) -> T:
        assert len(seq) > 0, "sequence must be non-empty"
        return self._rng.choice(seq)

    def fork(self) -> DeterministicRng:
        """Independent stream; drawing from it does not advance this one."""
        self._forks_count += 1
        return DeterministicRng(_seed=self._rng.randint(0, 2**63 - 1))

    def forks_count(self) -> int:
        return self._forks_count
