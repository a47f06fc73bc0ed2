"""
Context Service

Orchestrates reads and writes of context documents for the API and the bots:

- read: stored document (or default) with HealthExpiry applied
- apply_update: merge a partial update with every domain rule, then persist
- modify: read-modify-write where the update is derived from a fresh snapshot
- record_event: pay for an attended event and add it to the history

Read-modify-write cycles are serialized per user with an asyncio.Lock, so two
bots updating the same user in one process never lose each other's writes.
Locks live only while a coroutine holds or waits on them, so idle users
leave nothing behind. They are process-local; a multi-process deployment
needs a version check in storage on top of this.
"""

import asyncio
import logging
import weakref
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from hearth.context import rules
from hearth.context.store import ContextStore
from hearth.core.errors import ContextValidationError, StoreUnavailable
from hearth.core.models import AttendedEvent

logger = logging.getLogger(__name__)

# Computes a partial update from the current document, or None for no change
Derive = Callable[[dict[str, Any]], Mapping[str, Any] | None]


@dataclass
class ModifyResult:
    """Outcome of ContextService.modify."""

    context: dict[str, Any]
    update: dict[str, Any] = field(default_factory=dict)
    persisted: bool = False
    degraded: bool = False  # the snapshot was the default because storage failed


class ContextService:
    """Context reads and rule-checked writes on top of a ContextStore."""

    def __init__(self, store: ContextStore) -> None:
        self._store = store
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @property
    def store(self) -> ContextStore:
        return self._store

    def lock_for(self, user_id: str) -> asyncio.Lock:
        """The lock serializing writes for one user."""
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def locks_count(self) -> int:
        """Number of users with a live lock."""
        return len(self._locks)

    # =========================================================================
    # Reads
    # =========================================================================

    async def read(self, user_id: str) -> dict[str, Any]:
        """Fail-closed read. StoreUnavailable propagates."""
        return await self._store.get(user_id)

    async def read_or_default(self, user_id: str) -> dict[str, Any]:
        """Fail-open read: the default document when storage is unreachable."""
        try:
            return await self._store.get(user_id)
        except StoreUnavailable as e:
            logger.warning(f"Context fetch failed for {user_id}, using default context: {e}")
            return self._store.default()

    # =========================================================================
    # Writes
    # =========================================================================

    async def apply_update(self, user_id: str, update: Mapping[str, Any]) -> dict[str, Any]:
        """Merge a partial update into the user's document and persist it.

        Returns:
            The full resulting document

        Raises:
            ContextValidationError: If the update is not a JSON object, or
                would break the document shape
            StoreUnavailable: If the read or the write fails
        """
        if not isinstance(update, Mapping):
            raise ContextValidationError("Context update must be a JSON object")
        rules.validate_update(update)

        async with self.lock_for(user_id):
            current = await self._store.get(user_id)
            context = rules.apply_update(current, update, self._store.now())
            await self._store.set(user_id, context)

        logger.info(
            f"Updated context for {user_id}: "
            f"health={(context.get('health') or {}).get('currentCondition')} "
            f"budget={(context.get('finance') or {}).get('totalBalance')}"
        )
        return context

    async def modify(self, user_id: str, derive: Derive) -> ModifyResult:
        """Read, derive a partial update, merge and persist under the user's lock.

        Personalization is fail-open: if the read fails, ``derive`` sees the
        default document and nothing is written, so a stored document is
        never overwritten with defaults. A failed write is logged and the
        locally merged document is still returned.
        """
        async with self.lock_for(user_id):
            degraded = False
            try:
                current = await self._store.get(user_id)
            except StoreUnavailable as e:
                logger.warning(f"Context fetch failed for {user_id}, using default context: {e}")
                current = self._store.default()
                degraded = True

            update = dict(derive(current) or {})
            if not update:
                return ModifyResult(context=current, degraded=degraded)

            context = rules.apply_update(current, update, self._store.now())
            if degraded:
                logger.warning(f"Not persisting update for {user_id}: context store unavailable")
                return ModifyResult(context=context, update=update, degraded=True)

            try:
                await self._store.set(user_id, context)
            except StoreUnavailable as e:
                logger.warning(f"Failed to update context for {user_id}: {e}")
                return ModifyResult(context=context, update=update)

        return ModifyResult(context=context, update=update, persisted=True)

    async def record_event(self, user_id: str, event: AttendedEvent) -> dict[str, Any]:
        """Record an attended event and pay for it from the balance.

        Returns:
            {"success": True, "newBalance": <balance after the expense>}

        Raises:
            StoreUnavailable: If the read or the write fails
        """
        async with self.lock_for(user_id):
            current = await self._store.get(user_id)
            now = self._store.now()
            update = rules.event_expense_update(current, event, now)
            context = rules.apply_update(current, update, now)
            await self._store.set(user_id, context)

        new_balance = context["finance"]["totalBalance"]
        logger.info(f"Recorded event {event.name!r} for {user_id}, balance now {new_balance}")
        return {"success": True, "newBalance": new_balance}
