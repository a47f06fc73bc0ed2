"""
SimClock - Simulated Deterministic Clock

TigerStyle: Time only moves when a test moves it. SimClock satisfies the
Clock protocol, so a ContextStore built on it evaluates health expiry
against simulated time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC

from hearth.core.constants import TIME_ADVANCE_MS_MAX, TIME_SIM_START_MS


@dataclass
class SimClock:
    """Simulated UTC clock, millisecond resolution."""

    _now_ms: int = field(default=TIME_SIM_START_MS)
    _advances_count: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        assert self._now_ms >= 0, "time cannot be negative"

    def now_ms(self) -> int:
        return self._now_ms

    def now_datetime(self) -> datetime:
        """Current simulated time as an aware UTC datetime."""
        return datetime.fromtimestamp(self._now_ms / 1000.0, tz=UTC)

    def advance_ms(self, delta_ms: int) -> int:
        """Move time forward.

        Returns:
            The new current time in milliseconds.
        """
        assert delta_ms >= 0, f"cannot advance by negative time ({delta_ms}ms)"
        assert delta_ms <= TIME_ADVANCE_MS_MAX, \
            f"advance ({delta_ms}ms) exceeds TIME_ADVANCE_MS_MAX ({TIME_ADVANCE_MS_MAX}ms)"

        self._now_ms += delta_ms
        self._advances_count += 1
        return self._now_ms

    def advance(self, delta: timedelta) -> int:
        """Move time forward by a timedelta."""
        return self.advance_ms(int(delta.total_seconds() * 1000))

    def advance_days(self, days: float) -> int:
        return self.advance(timedelta(days=days))

    def advances_count(self) -> int:
        return self._advances_count
