"""Interactive core subpackage exports."""

from crypto_analysis.core.controller import AnalysisRequestController, AnalyticsService
from crypto_analysis.core.cooldown import Allowed, CooldownGuard, Denied, Permission
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

__all__ = [
    "AnalysisRequestController",
    "AnalyticsService",
    "Allowed",
    "Denied",
    "Permission",
    "CooldownGuard",
    "SearchDebouncer",
    "ErrorKind",
    "ErrorPresentationPolicy",
    "ErrorState",
    "CooperativeScheduler",
    "TimerHandle",
    "SessionState",
    "RequestPhase",
    "Event",
    "QueryChanged",
    "LookupSucceeded",
    "AssetSelected",
    "AnalysisRequested",
    "AnalysisSucceeded",
    "AnalysisFailed",
    "TimerTicked",
]
