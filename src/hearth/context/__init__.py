"""
Hearth Context - the shared per-user context document.

Every bot reads and writes one JSON document per user. This package owns
how that document is stored, merged and kept consistent.

Usage:
    from hearth.context import ContextService, ContextStore
    from hearth.context.storage import MemoryContextAdapter

    store = ContextStore(MemoryContextAdapter())
    await store.connect()
    service = ContextService(store)

    context = await service.apply_update("user-1", {"finance": {"totalBalance": 4000}})
    context["preferences"]["events"]["budgetRange"]["max"]  # 800
"""

from hearth.context.affordability import check_affordability, recommend
from hearth.context.clock import Clock, SystemClock
from hearth.context.merge import deep_merge
from hearth.context.service import ContextService, ModifyResult
from hearth.context.signals import TextSignalExtractor, TextSignals
from hearth.context.store import ContextStore

__all__ = [
    "Clock",
    "ContextService",
    "ContextStore",
    "ModifyResult",
    "SystemClock",
    "TextSignalExtractor",
    "TextSignals",
    "check_affordability",
    "deep_merge",
    "recommend",
]
