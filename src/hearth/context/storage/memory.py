"""
In-memory Context Storage

Keeps documents in a dict. Documents are copied on the way in and out so
callers never share state with the store. Contents are lost on restart.
"""

import logging
from copy import deepcopy
from typing import Any

from hearth.context.storage.base import ContextStorageAdapter

logger = logging.getLogger(__name__)


class MemoryContextAdapter(ContextStorageAdapter):
    """Dict-backed adapter."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._connected = False

    async def connect(self) -> None:
        self._connected = True
        logger.info("Using in-memory context storage")

    async def disconnect(self) -> None:
        self._connected = False

    async def health_check(self) -> bool:
        return self._connected

    async def read(self, user_id: str) -> dict[str, Any] | None:
        document = self._documents.get(user_id)
        return deepcopy(document) if document is not None else None

    async def write(self, user_id: str, document: dict[str, Any]) -> None:
        self._documents[user_id] = deepcopy(document)

    async def delete(self, user_id: str) -> bool:
        return self._documents.pop(user_id, None) is not None

    async def list_users(self, limit: int = 100) -> list[str]:
        return sorted(self._documents)[:limit]
