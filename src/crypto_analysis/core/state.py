"""Session state and the closed set of controller events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from crypto_analysis.core.errors import ErrorKind, ErrorState
from crypto_analysis.exceptions import AnalysisError
from crypto_analysis.service.payloads import (
    DEFAULT_ASSET,
    AnalysisMode,
    AnalysisRequest,
    AnalysisResult,
    Asset,
    SearchResult,
)

TimerKind = Literal["debounce", "cooldown", "error"]


class RequestPhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class SessionState:
    """Everything the view renders. Mutated only by the controller."""

    selected: Asset = DEFAULT_ASSET
    query: str = ""
    results: tuple[SearchResult, ...] = ()
    lookup_query: str | None = None
    phase: RequestPhase = RequestPhase.IDLE
    latest_sequence: int = 0
    pending: AnalysisRequest | None = None
    result: AnalysisResult | None = None
    error: ErrorState | None = None
    cooldown_remaining: int = 0

    @property
    def dropdown_visible(self) -> bool:
        return bool(self.results)

    @property
    def loading(self) -> bool:
        return self.phase is RequestPhase.PENDING

    @property
    def rate_limited(self) -> bool:
        return self.error is not None and self.error.kind is ErrorKind.RATE_LIMITED

    @property
    def analyze_enabled(self) -> bool:
        return not self.loading and self.cooldown_remaining == 0


@dataclass(frozen=True)
class QueryChanged:
    query: str


@dataclass(frozen=True)
class LookupSucceeded:
    query: str
    results: tuple[SearchResult, ...]


@dataclass(frozen=True)
class AssetSelected:
    asset: Asset


@dataclass(frozen=True)
class AnalysisRequested:
    """User trigger. ``subject_id`` defaults to the selected asset."""

    mode: AnalysisMode
    days: int
    rolling_window: int | None = None
    subject_id: str | None = None


@dataclass(frozen=True)
class AnalysisSucceeded:
    sequence: int
    result: AnalysisResult


@dataclass(frozen=True)
class AnalysisFailed:
    sequence: int
    error: AnalysisError


@dataclass(frozen=True)
class TimerTicked:
    timer: TimerKind


Event = (
    QueryChanged
    | LookupSucceeded
    | AssetSelected
    | AnalysisRequested
    | AnalysisSucceeded
    | AnalysisFailed
    | TimerTicked
)
