"""Debounced search trigger for the asset lookup box."""

from __future__ import annotations

from collections.abc import Callable

from crypto_analysis.core.scheduler import CooperativeScheduler, TimerHandle


class SearchDebouncer:
    """Collapse bursts of query edits into one idle-timer firing.

    Every change cancels the pending timer and starts a new one, so for any
    number of edits inside one idle window ``on_idle`` runs once, with the
    latest query text.
    """

    def __init__(
        self,
        scheduler: CooperativeScheduler,
        on_idle: Callable[[str], None],
        delay_seconds: float = 1.0,
        min_length: int = 3,
    ) -> None:
        self._scheduler = scheduler
        self._on_idle = on_idle
        self.delay_seconds = delay_seconds
        self.min_length = min_length
        self.query = ""
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._handle.cancelled

    def query_changed(self, query: str) -> None:
        self.cancel()
        self.query = query
        self._handle = self._scheduler.call_later(self.delay_seconds, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def should_lookup(self, query: str) -> bool:
        return len(query) >= self.min_length

    def _fire(self) -> None:
        self._handle = None
        self._on_idle(self.query)
