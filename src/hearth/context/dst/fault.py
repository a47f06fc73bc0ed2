"""
FaultInjector - Probabilistic Fault Injection

TigerStyle: Faults are registered explicitly and decided by a seeded RNG, so
the same seed injects the same faults at the same operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from hearth.context.dst.rng import DeterministicRng
from hearth.core.constants import DST_FAULT_PROBABILITY_MAX, DST_FAULT_PROBABILITY_MIN


class FaultType(str, Enum):
    """Faults the simulated collaborators know how to produce."""

    # Context storage
    STORAGE_READ_FAIL = "storage_read_fail"
    STORAGE_WRITE_FAIL = "storage_write_fail"

    # Text generation
    GENERATION_FAIL = "generation_fail"
    GENERATION_MALFORMED = "generation_malformed"


@dataclass
class FaultConfig:
    """One fault rule.

    ``operation_filter`` restricts the rule to operations whose name contains
    it (e.g. "storage_write"). ``after_operations`` and ``max_injections``
    bound when and how often it fires.
    """

    fault_type: FaultType
    probability: float
    operation_filter: str | None = None
    after_operations: int = 0
    max_injections: int | None = None
    enabled: bool = True

    def __post_init__(self) -> None:
        assert DST_FAULT_PROBABILITY_MIN <= self.probability <= DST_FAULT_PROBABILITY_MAX, \
            f"probability ({self.probability}) must be in [{DST_FAULT_PROBABILITY_MIN}, {DST_FAULT_PROBABILITY_MAX}]"
        assert self.after_operations >= 0, "after_operations must be non-negative"
        assert self.max_injections is None or self.max_injections > 0, \
            "max_injections must be positive if set"


@dataclass
class _FaultState:
    config: FaultConfig
    injections_count: int = 0


@dataclass
class FaultInjector:
    """Decides, per operation, whether a registered fault fires."""

    _rng: DeterministicRng
    _faults: list[_FaultState] = field(default_factory=list)
    _operations_count: int = field(default=0, init=False)

    def register(self, config: FaultConfig) -> None:
        assert config is not None, "config must not be None"
        self._faults.append(_FaultState(config=config))

    def should_inject(self, operation: str) -> FaultType | None:
        """Return the fault to inject for this operation, or None.

        Only faults relevant to the operation are considered: storage faults
        for "storage_*" operations, generation faults for "generation".
        """
        assert operation, "operation must not be empty"
        self._operations_count += 1

        for state in self._faults:
            config = state.config
            if not config.enabled:
                continue
            if not _applies(config.fault_type, operation):
                continue
            if config.operation_filter is not None and config.operation_filter not in operation:
                continue
            if self._operations_count < config.after_operations:
                continue
            if config.max_injections is not None and state.injections_count >= config.max_injections:
                continue
            if self._rng.next_bool(config.probability):
                state.injections_count += 1
                return config.fault_type

        return None

    def operations_count(self) -> int:
        return self._operations_count

    def injection_stats(self) -> dict[str, int]:
        """Injections per fault type."""
        stats: dict[str, int] = {}
        for state in self._faults:
            key = state.config.fault_type.value
            stats[key] = stats.get(key, 0) + state.injections_count
        return stats

    def total_injections(self) -> int:
        return sum(state.injections_count for state in self._faults)


_FAULT_OPERATIONS: dict[FaultType, str] = {
    FaultType.STORAGE_READ_FAIL: "storage_read",
    FaultType.STORAGE_WRITE_FAIL: "storage_write",
    FaultType.GENERATION_FAIL: "generation",
    FaultType.GENERATION_MALFORMED: "generation",
}


def _applies(fault_type: FaultType, operation: str) -> bool:
    return operation.startswith(_FAULT_OPERATIONS[fault_type])
