"""Request lifecycle controller for search and analysis.

All state lives in one :class:`SessionState` and changes only through
:meth:`AnalysisRequestController.dispatch`. Network work is spawned on the
cooperative scheduler and re-enters through ``dispatch`` as completion events,
each stamped with the sequence number of the request that produced it. A
completion is applied only when it belongs to the newest request still
pending, so the visible result always reflects the most recently initiated
request whatever order the responses arrive in.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from crypto_analysis.config import AppConfig
from crypto_analysis.core.cooldown import Allowed, CooldownGuard
from crypto_analysis.core.debounce import SearchDebouncer
from crypto_analysis.core.errors import ErrorKind, ErrorPresentationPolicy, ErrorState
from crypto_analysis.core.scheduler import CooperativeScheduler, TimerHandle
from crypto_analysis.core.state import (
    AnalysisFailed,
    AnalysisRequested,
    AnalysisSucceeded,
    AssetSelected,
    Event,
    LookupSucceeded,
    QueryChanged,
    RequestPhase,
    SessionState,
    TimerTicked,
)
from crypto_analysis.exceptions import AnalysisError
from crypto_analysis.service.payloads import (
    ANALYSIS_MODES,
    AnalysisRequest,
    Asset,
    SearchResult,
    parse_analysis_payload,
)

LOGGER = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class AnalyticsService(Protocol):
    async def search(self, query: str) -> list[SearchResult]: ...

    async def analyze(self, request: AnalysisRequest) -> dict[str, Any]: ...


class AnalysisRequestController:
    """Own the session state and every transition of it."""

    def __init__(
        self,
        service: AnalyticsService,
        config: AppConfig | None = None,
        scheduler: CooperativeScheduler | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.service = service
        self.scheduler = scheduler or CooperativeScheduler()
        default = self.config.analysis.asset
        self.state = SessionState(selected=Asset(id=default.id, symbol=default.symbol, name=default.name))
        self.guard = CooldownGuard(self.config.cooldown.seconds)
        self.errors = ErrorPresentationPolicy(
            display_seconds=self.config.errors.display_seconds,
            locale=self.config.errors.locale,
        )
        self.debouncer = SearchDebouncer(
            self.scheduler,
            on_idle=lambda _query: self.dispatch(TimerTicked("debounce")),
            delay_seconds=self.config.search.debounce_seconds,
            min_length=self.config.search.min_query_length,
        )
        self._ticker: TimerHandle | None = None
        self._error_timer: TimerHandle | None = None
        self._handlers: dict[type, Callable[[Any], None]] = {
            QueryChanged: self._on_query_changed,
            LookupSucceeded: self._on_lookup_succeeded,
            AssetSelected: self._on_asset_selected,
            AnalysisRequested: self._on_analysis_requested,
            AnalysisSucceeded: self._on_analysis_succeeded,
            AnalysisFailed: self._on_analysis_failed,
            TimerTicked: self._on_timer_ticked,
        }

    def dispatch(self, event: Event) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event: {event!r}")
        handler(event)

    # Convenience wrappers used by the UI and CLI.

    def change_query(self, query: str) -> None:
        self.dispatch(QueryChanged(query))

    def select(self, asset: Asset | SearchResult) -> None:
        if isinstance(asset, SearchResult):
            asset = asset.to_asset()
        self.dispatch(AssetSelected(asset))

    def request_analysis(
        self,
        mode: str,
        days: int,
        rolling_window: int | None = None,
        subject_id: str | None = None,
    ) -> AnalysisRequest | None:
        """Dispatch a user trigger; return the issued request, or None when gated."""
        before = self.state.latest_sequence
        self.dispatch(AnalysisRequested(mode, days, rolling_window, subject_id))
        if self.state.latest_sequence == before:
            return None
        return self.state.pending

    def poll(self) -> int:
        return self.scheduler.run_due()

    async def settle(self) -> None:
        """Run due timers and wait for all spawned network work."""
        self.scheduler.run_due()
        await self.scheduler.drain()

    # Search

    def _on_query_changed(self, event: QueryChanged) -> None:
        self.state.query = event.query
        self.debouncer.query_changed(event.query)

    def _on_debounce_elapsed(self) -> None:
        query = self.state.query
        if not self.debouncer.should_lookup(query):
            self.state.results = ()
            self.state.lookup_query = None
            return
        self.state.lookup_query = query
        self.scheduler.spawn(self._lookup(query))

    async def _lookup(self, query: str) -> None:
        try:
            results = await self.service.search(query)
        except AnalysisError as exc:
            LOGGER.warning("Asset lookup failed for query=%r: %s", query, exc.message or exc)
            results = []
        self.dispatch(LookupSucceeded(query, tuple(results)))

    def _on_lookup_succeeded(self, event: LookupSucceeded) -> None:
        if event.query != self.state.query or event.query != self.state.lookup_query:
            LOGGER.debug("Discarding lookup results for superseded query=%r", event.query)
            return
        self.state.results = event.results
        self.state.lookup_query = None

    def _on_asset_selected(self, event: AssetSelected) -> None:
        self.debouncer.cancel()
        self._stop_ticker()
        self._clear_error()
        self.state.selected = event.asset
        self.state.query = ""
        self.state.results = ()
        self.state.lookup_query = None
        self.state.result = None
        self.state.pending = None
        self.state.phase = RequestPhase.IDLE
        self.state.cooldown_remaining = 0

    # Analysis

    def _on_analysis_requested(self, event: AnalysisRequested) -> None:
        if event.mode not in ANALYSIS_MODES:
            raise ValueError(f"Unsupported analysis mode='{event.mode}'. Use simulation|correlation.")
        now = self.scheduler.now()
        permission = self.guard.request_permission(now)
        if not isinstance(permission, Allowed):
            seconds = permission.seconds_remaining
            self._show_error(self.errors.rate_limited(seconds, now))
            self.state.cooldown_remaining = seconds
            self._start_ticker()
            return

        self.state.latest_sequence += 1
        request = AnalysisRequest(
            mode=event.mode,
            subject_id=event.subject_id or self.state.selected.id,
            days=event.days,
            sequence=self.state.latest_sequence,
            rolling_window=event.rolling_window,
        )
        self.state.pending = request
        self.state.phase = RequestPhase.PENDING
        self.scheduler.spawn(self._execute(request))

    async def _execute(self, request: AnalysisRequest) -> None:
        try:
            payload = await self.service.analyze(request)
            result = parse_analysis_payload(request.mode, payload)
        except AnalysisError as exc:
            self.dispatch(AnalysisFailed(request.sequence, exc))
            return
        self.dispatch(AnalysisSucceeded(request.sequence, result))

    def _is_current(self, sequence: int) -> bool:
        pending = self.state.pending
        current = pending is not None and pending.sequence == sequence == self.state.latest_sequence
        if not current:
            LOGGER.debug(
                "Discarding completion for seq=%d (latest=%d)", sequence, self.state.latest_sequence
            )
        return current

    def _on_analysis_succeeded(self, event: AnalysisSucceeded) -> None:
        if not self._is_current(event.sequence):
            return
        self.state.result = event.result
        self.state.pending = None
        self.state.phase = RequestPhase.SUCCESS
        self._clear_error()

    def _on_analysis_failed(self, event: AnalysisFailed) -> None:
        if not self._is_current(event.sequence):
            return
        # the last good result stays visible under the banner
        self.state.pending = None
        self.state.phase = RequestPhase.FAILURE
        self._show_error(self.errors.from_exception(event.error, self.scheduler.now()))

    # Timers

    def _on_timer_ticked(self, event: TimerTicked) -> None:
        if event.timer == "debounce":
            self._on_debounce_elapsed()
        elif event.timer == "cooldown":
            self._on_cooldown_tick()
        elif event.timer == "error":
            self._on_error_timer()
        else:
            raise ValueError(f"Unknown timer '{event.timer}'")

    def _on_cooldown_tick(self) -> None:
        self._ticker = None
        remaining = self.guard.seconds_remaining(self.scheduler.now())
        self.state.cooldown_remaining = remaining
        if remaining > 0:
            self._ticker = self.scheduler.call_later(TICK_SECONDS, self._tick_cooldown)
            return
        if self.state.rate_limited:
            self._clear_error()

    def _on_error_timer(self) -> None:
        self._error_timer = None
        error = self.state.error
        if error is not None and self.errors.is_expired(error, self.scheduler.now()):
            self.state.error = None

    def _tick_cooldown(self) -> None:
        self.dispatch(TimerTicked("cooldown"))

    def _expire_error(self) -> None:
        self.dispatch(TimerTicked("error"))

    def _start_ticker(self) -> None:
        if self._ticker is None:
            self._ticker = self.scheduler.call_later(TICK_SECONDS, self._tick_cooldown)

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _show_error(self, error: ErrorState) -> None:
        self._clear_error()
        self.state.error = error
        if self.errors.auto_dismisses(error):
            delay = error.expiry - self.scheduler.now()
            self._error_timer = self.scheduler.call_later(delay, self._expire_error)

    def _clear_error(self) -> None:
        if self._error_timer is not None:
            self._error_timer.cancel()
            self._error_timer = None
        self.state.error = None

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.state.error.kind if self.state.error is not None else None
