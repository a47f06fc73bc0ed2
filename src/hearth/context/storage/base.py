"""
Abstract Base Class for Context Storage Adapters

Defines the interface every backend that persists context documents must
implement. Adapters raise StoreUnavailable when the backend cannot be
reached, so callers can choose between fail-open and fail-closed handling.
"""

from abc import ABC, abstractmethod
from typing import Any


class ContextStorageAdapter(ABC):
    """
    Abstract base class for context document storage.

    Implementations:
    - MemoryContextAdapter: in-process dict (development, tests)
    - PostgresContextAdapter: JSONB rows via asyncpg
    - SimContextStorage: deterministic simulation with fault injection
    """

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the store and initialize resources."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect and clean up resources."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is healthy and accessible."""
        pass

    @abstractmethod
    async def read(self, user_id: str) -> dict[str, Any] | None:
        """
        Read the stored document for a user.

        Args:
            user_id: Stable user identifier

        Returns:
            The document, or None if nothing is stored for the user
        """
        pass

    @abstractmethod
    async def write(self, user_id: str, document: dict[str, Any]) -> None:
        """
        Replace the stored document for a user wholesale.

        Args:
            user_id: Stable user identifier
            document: The complete, already merged document
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """
        Delete the stored document.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_users(self, limit: int = 100) -> list[str]:
        """List user ids that have a stored document."""
        pass

    async def __aenter__(self) -> "ContextStorageAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()
