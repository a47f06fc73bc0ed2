"""Context storage adapters."""

from hearth.context.storage.base import ContextStorageAdapter
from hearth.context.storage.memory import MemoryContextAdapter
from hearth.context.storage.postgres import PostgresContextAdapter
from hearth.core.config import Settings, StorageBackend


def create_storage(settings: Settings) -> ContextStorageAdapter:
    """Build the adapter selected by ``settings.storage_backend``."""
    if settings.storage_backend == StorageBackend.POSTGRES:
        return PostgresContextAdapter(settings.postgres_url)
    return MemoryContextAdapter()


__all__ = [
    "ContextStorageAdapter",
    "MemoryContextAdapter",
    "PostgresContextAdapter",
    "create_storage",
]
