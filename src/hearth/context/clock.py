"""
Clocks

Domain rules never read wall-clock time themselves; they take ``now`` from a
Clock. SystemClock is used in production, SimClock (hearth.context.dst) in
simulation tests.
"""

from datetime import datetime, UTC
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything that can tell the current UTC time."""

    def now_datetime(self) -> datetime:
        """Current time as an aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock time."""

    def now_datetime(self) -> datetime:
        return datetime.now(UTC)
