"""
Simulation - DST Test Harness

TigerStyle: One seed, one simulated clock, explicit faults. The environment
hands tests a ContextStore and ContextService wired to simulated storage,
so rule timing (health expiry) and outages are fully reproducible.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from hearth.context.dst.clock import SimClock
from hearth.context.dst.config import SimConfig
from hearth.context.dst.fault import FaultConfig, FaultInjector, FaultType
from hearth.context.dst.generation import SimTextGenerator
from hearth.context.dst.rng import DeterministicRng
from hearth.context.dst.storage import SimContextStorage
from hearth.context.service import ContextService
from hearth.context.store import ContextStore

_ENV_PARAM_NAMES = ("env", "environment")


@dataclass
class SimEnvironment:
    """Everything a simulation test touches."""

    config: SimConfig
    clock: SimClock
    rng: DeterministicRng
    faults: FaultInjector
    storage: SimContextStorage
    generator: SimTextGenerator
    store: ContextStore
    service: ContextService

    def advance_days(self, days: float) -> int:
        return self.clock.advance_days(days)

    def user_ids(self) -> list[str]:
        return [f"sim-user-{i}" for i in range(self.config.users_count)]


@dataclass
class Simulation:
    """
    DST simulation harness.

    Usage:
        sim = Simulation(SimConfig.from_env_or_random())
        sim.with_storage_faults(0.1)

        async with sim.run() as env:
            await env.service.apply_update("u1", {"finance": {"totalBalance": 100}})
            env.advance_days(8)
            context = await env.service.read_or_default("u1")
    """

    config: SimConfig
    _fault_configs: list[FaultConfig] = field(default_factory=list)

    def with_fault(self, fault_config: FaultConfig) -> Simulation:
        assert fault_config is not None, "fault_config must not be None"
        self._fault_configs.append(fault_config)
        return self

    def with_storage_faults(self, probability: float) -> Simulation:
        self._fault_configs.append(FaultConfig(FaultType.STORAGE_READ_FAIL, probability))
        self._fault_configs.append(FaultConfig(FaultType.STORAGE_WRITE_FAIL, probability))
        return self

    def with_generation_faults(self, probability: float) -> Simulation:
        self._fault_configs.append(FaultConfig(FaultType.GENERATION_FAIL, probability))
        return self

    @asynccontextmanager
    async def run(self) -> AsyncIterator[SimEnvironment]:
        """Build a connected environment and tear it down afterwards."""
        rng = DeterministicRng(_seed=self.config.seed)
        clock = SimClock(_now_ms=self.config.start_ms)

        faults = FaultInjector(_rng=rng.fork())
        for fault_config in self._fault_configs:
            faults.register(fault_config)

        storage = SimContextStorage(_clock=clock, _faults=faults)
        store = ContextStore(storage, clock=clock)
        env = SimEnvironment(
            config=self.config,
            clock=clock,
            rng=rng,
            faults=faults,
            storage=storage,
            generator=SimTextGenerator(_faults=faults),
            store=store,
            service=ContextService(store),
        )

        await store.connect()
        try:
            yield env
        finally:
            await store.disconnect()
            if faults.total_injections() > 0:
                print(f"DST: Seed={self.config.seed}")
                print(f"DST: Storage stats: {storage.stats()}")
                print(f"DST: Fault stats: {faults.injection_stats()}")


def create_simulation(seed: int | None = None) -> Simulation:
    """Simulation with an explicit seed, or one from DST_SEED / random."""
    config = SimConfig.with_seed(seed) if seed is not None else SimConfig.from_env_or_random()
    return Simulation(config)


def dst_test(
    func: Callable[..., Awaitable[None]] | None = None,
    *,
    seed: int | None = None,
    storage_fault_probability: float = 0.0,
    generation_fault_probability: float = 0.0,
):
    """Run an async test inside a simulation.

    The environment is passed as the parameter named ``env`` (after ``self``
    for methods).

    Usage:
        @pytest.mark.asyncio
        @dst_test(seed=42)
        async def test_expiry(env: SimEnvironment):
            ...
    """

    def decorator(test_func: Callable[..., Awaitable[None]]):
        params = list(inspect.signature(test_func).parameters)
        non_self_params = [p for p in params if p != "self"]
        wants_env = bool(non_self_params) and non_self_params[0] in _ENV_PARAM_NAMES
        is_method = bool(params) and params[0] == "self"

        @functools.wraps(test_func)
        async def wrapper(*args, **kwargs):
            sim = create_simulation(seed)
            if storage_fault_probability > 0:
                sim.with_storage_faults(storage_fault_probability)
            if generation_fault_probability > 0:
                sim.with_generation_faults(generation_fault_probability)

            async with sim.run() as env:
                if not wants_env:
                    await test_func(*args, **kwargs)
                elif is_method and args:
                    await test_func(args[0], env, *args[1:], **kwargs)
                else:
                    await test_func(env, *args, **kwargs)

        # pytest must not try to resolve ``env`` as a fixture
        wrapper.__signature__ = inspect.Signature(
            [p for name, p in inspect.signature(test_func).parameters.items() if name not in _ENV_PARAM_NAMES]
        )
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
