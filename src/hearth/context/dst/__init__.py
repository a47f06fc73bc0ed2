"""
Context DST - Deterministic Simulation Testing

Seeded simulation of the context store: simulated time for health expiry,
simulated storage and text generation with injectable faults.

Usage:
    from hearth.context.dst import Simulation, SimConfig, FaultConfig, FaultType

    sim = Simulation(SimConfig.with_seed(42))
    sim.with_fault(FaultConfig(FaultType.STORAGE_WRITE_FAIL, probability=0.1))

    async with sim.run() as env:
        await env.service.apply_update("u1", {"health": {"activeIllness": "fever"}})
        env.advance_days(8)
        context = await env.service.read("u1")
        assert context["health"]["activeIllness"] is None

Run with seed:
    DST_SEED=12345 pytest tests/dst/
"""

from .config import SimConfig
from .rng import DeterministicRng
from .clock import SimClock
from .fault import FaultType, FaultConfig, FaultInjector
from .storage import SimContextStorage, context_key
from .generation import SimTextGenerator
from .simulation import Simulation, SimEnvironment, dst_test, create_simulation

__all__ = [
    # Config
    "SimConfig",
    # Primitives
    "DeterministicRng",
    "SimClock",
    # Faults
    "FaultType",
    "FaultConfig",
    "FaultInjector",
    # Collaborators
    "SimContextStorage",
    "SimTextGenerator",
    "context_key",
    # Simulation
    "Simulation",
    "SimEnvironment",
    "dst_test",
    "create_simulation",
]
