"""Client-side cooldown gate between expensive analysis requests."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allowed:
    """Permission granted; the grant time is already recorded."""

    granted_at: float


@dataclass(frozen=True)
class Denied:
    """Permission refused with the whole seconds left until the next grant."""

    seconds_remaining: int


Permission = Allowed | Denied


class CooldownGuard:
    """Enforce a minimum interval between granted requests.

    Remaining time is always derived from the last grant and the caller's clock
    reading, never from a separately decremented counter.
    """

    def __init__(self, cooldown_seconds: float = 10.0) -> None:
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be non-negative")
        self.cooldown_seconds = float(cooldown_seconds)
        self.last_granted: float | None = None

    def remaining(self, now: float) -> float:
        """Exact remaining cooldown in seconds, never negative."""
        if self.last_granted is None:
            return 0.0
        return max(0.0, self.cooldown_seconds - (now - self.last_granted))

    def seconds_remaining(self, now: float) -> int:
        return math.ceil(self.remaining(now))

    def request_permission(self, now: float) -> Permission:
        """Grant and record ``now``, or deny with the remaining wait.

        The grant is recorded before the guarded call runs, so a failing call
        still counts against the cooldown.
        """
        remaining = self.remaining(now)
        if remaining <= 0.0:
            self.last_granted = now
            return Allowed(granted_at=now)
        seconds = math.ceil(remaining)
        LOGGER.info("Analysis request denied; %d second(s) of cooldown left", seconds)
        return Denied(seconds_remaining=seconds)

    def available_at(self) -> float | None:
        if self.last_granted is None:
            return None
        return self.last_granted + self.cooldown_seconds
