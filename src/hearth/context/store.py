"""
Context Store

Key-value access to one context document per user, on top of a storage
adapter. Absence is a valid state: ``get`` returns the canonical default
document for users that have never been written.

Usage:
    store = ContextStore(MemoryContextAdapter())
    await store.connect()

    context = await store.get("user-1")   # default document
    await store.set("user-1", context)
"""

import logging
from collections.abc import Mapping
from copy import deepcopy
from datetime import datetime
from typing import Any

from hearth.context.clock import Clock, SystemClock
from hearth.context.rules import apply_health_expiry
from hearth.context.storage.base import ContextStorageAdapter
from hearth.core.constants import DEFAULT_CITY
from hearth.core.errors import ContextValidationError
from hearth.core.models import default_context

logger = logging.getLogger(__name__)


class ContextStore:
    """Get/set of whole context documents with default materialization."""

    def __init__(
        self,
        storage: ContextStorageAdapter,
        clock: Clock | None = None,
        default_city: str = DEFAULT_CITY,
    ) -> None:
        self._storage = storage
        self._clock = clock or SystemClock()
        self._default_city = default_city

    @property
    def storage(self) -> ContextStorageAdapter:
        return self._storage

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> datetime:
        """Current time from the store's clock."""
        return self._clock.now_datetime()

    async def connect(self) -> None:
        await self._storage.connect()

    async def disconnect(self) -> None:
        await self._storage.disconnect()

    async def health_check(self) -> bool:
        return await self._storage.health_check()

    def default(self) -> dict[str, Any]:
        """A fresh canonical default document."""
        return default_context(self._default_city)

    def resolve_or_default(self, raw: Mapping[str, Any] | None) -> dict[str, Any]:
        """Turn a raw storage value into a document.

        None (nothing stored) becomes the default document. Stored documents
        are copied so the caller owns the result.
        """
        if raw is None:
            return self.default()
        return deepcopy(dict(raw))

    async def get(self, user_id: str) -> dict[str, Any]:
        """Get the document for a user, or the default if none is stored.

        HealthExpiry is applied to the returned document. The stored value is
        not rewritten; the next write persists the reset.

        Raises:
            ContextValidationError: If user_id is empty
            StoreUnavailable: If the backing store cannot be reached
        """
        _require_user_id(user_id)
        raw = await self._storage.read(user_id)
        return apply_health_expiry(self.resolve_or_default(raw), self.now())

    async def set(self, user_id: str, document: Mapping[str, Any]) -> None:
        """Replace the stored document wholesale. Last writer wins.

        Raises:
            ContextValidationError: If user_id is empty
            StoreUnavailable: If the backing store cannot be reached
        """
        _require_user_id(user_id)
        await self._storage.write(user_id, dict(document))
        logger.debug(f"Stored context for {user_id}")


def _require_user_id(user_id: str) -> None:
    if not user_id or not user_id.strip():
        raise ContextValidationError("User ID is required")
