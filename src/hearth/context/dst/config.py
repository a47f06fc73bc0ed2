"""
SimConfig - Simulation Configuration

TigerStyle: One seed drives every random decision in a run. The seed is
printed so a failing run can be replayed with DST_SEED=<seed>.
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass

from hearth.core.constants import DST_SIMULATION_STEPS_MAX, TIME_SIM_START_MS


@dataclass(frozen=True)
class SimConfig:
    """Configuration for one deterministic simulation run."""

    seed: int
    steps_max: int = DST_SIMULATION_STEPS_MAX

    # Simulated wall-clock start (ms since epoch)
    start_ms: int = TIME_SIM_START_MS

    # Users the simulated workload spreads its requests over
    users_count: int = 3

    @classmethod
    def from_env_or_random(cls) -> SimConfig:
        """Seed from DST_SEED if set, otherwise a fresh random seed."""
        seed_str = os.environ.get("DST_SEED")
        if seed_str is not None:
            seed = int(seed_str)
            print(f"DST: Using seed from environment: {seed}")
        else:
            seed = random.randint(0, 2**63 - 1)
            print(f"DST: Generated random seed (replay with DST_SEED={seed})")
        return cls(seed=seed)

    @classmethod
    def with_seed(cls, seed: int) -> SimConfig:
        assert seed >= 0, "seed must be non-negative"
        return cls(seed=seed)

    def __post_init__(self) -> None:
        assert self.seed >= 0, "seed must be non-negative"
        assert self.steps_max > 0, "steps_max must be positive"
        assert self.start_ms >= 0, "start_ms must be non-negative"
        assert self.users_count > 0, "users_count must be positive"
