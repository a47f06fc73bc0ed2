"""
SimContextStorage - Simulated Context Storage with Fault Injection

TigerStyle: A ContextStorageAdapter whose every operation consults the
FaultInjector first. Injected failures surface as StoreUnavailable, exactly
like a real backend outage, so fail-open and fail-closed paths can be
exercised deterministically.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from hearth.context.dst.clock import SimClock
from hearth.context.dst.fault import FaultInjector, FaultType
from hearth.context.storage.base import ContextStorageAdapter
from hearth.core.constants import CONTEXT_KEY_PREFIX
from hearth.core.errors import StoreUnavailable


def context_key(user_id: str) -> str:
    """user:<id>:context"""
    return f"{CONTEXT_KEY_PREFIX}{user_id}:context"


@dataclass
class _Entry:
    payload: str  # JSON text, so nothing is shared with callers
    created_at_ms: int
    modified_at_ms: int


@dataclass
class SimContextStorage(ContextStorageAdapter):
    """In-memory adapter driven by simulated time and injected faults."""

    _clock: SimClock
    _faults: FaultInjector
    _data: dict[str, _Entry] = field(default_factory=dict)
    _connected: bool = field(default=False, init=False)

    _reads_count: int = field(default=0, init=False)
    _writes_count: int = field(default=0, init=False)
    _faults_injected_count: int = field(default=0, init=False)

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def health_check(self) -> bool:
        return self._connected

    async def read(self, user_id: str) -> dict[str, Any] | None:
        assert user_id, "user_id must not be empty"
        self._reads_count += 1
        self._check_fault("storage_read", FaultType.STORAGE_READ_FAIL, user_id)

        entry = self._data.get(context_key(user_id))
        return json.loads(entry.payload) if entry else None

    async def write(self, user_id: str, document: dict[str, Any]) -> None:
        assert user_id, "user_id must not be empty"
        assert document is not None, "document must not be None"
        self._writes_count += 1
        self._check_fault("storage_write", FaultType.STORAGE_WRITE_FAIL, user_id)

        key = context_key(user_id)
        now_ms = self._clock.now_ms()
        payload = json.dumps(document)
        existing = self._data.get(key)
        if existing:
            existing.payload = payload
            existing.modified_at_ms = now_ms
        else:
            self._data[key] = _Entry(payload=payload, created_at_ms=now_ms, modified_at_ms=now_ms)

        assert key in self._data, "write must succeed"

    async def delete(self, user_id: str) -> bool:
        assert user_id, "user_id must not be empty"
        self._check_fault("storage_write", FaultType.STORAGE_WRITE_FAIL, user_id)
        return self._data.pop(context_key(user_id), None) is not None

    async def list_users(self, limit: int = 100) -> list[str]:
        self._check_fault("storage_read", FaultType.STORAGE_READ_FAIL, "*")
        users = sorted(key[len(CONTEXT_KEY_PREFIX):-len(":context")] for key in self._data)
        return users[:limit]

    def _check_fault(self, operation: str, fault_type: FaultType, user_id: str) -> None:
        fault = self._faults.should_inject(operation)
        if fault == fault_type:
            self._faults_injected_count += 1
            raise StoreUnavailable(f"simulated {operation} failure for {user_id}")

    def stats(self) -> dict[str, int]:
        return {
            "reads_count": self._reads_count,
            "writes_count": self._writes_count,
            "faults_injected_count": self._faults_injected_count,
            "entries_count": len(self._data),
        }
