"""Failure taxonomy and the rules for showing and dismissing errors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from crypto_analysis.exceptions import AnalysisError, PayloadValidationError, UpstreamRateLimitError

LOGGER = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    TRANSPORT = "transport"
    VALIDATION = "validation"


MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "rate_limited": "Please wait {seconds} seconds before running another analysis.",
        "upstream_rate_limited": "API rate limit reached. Please wait a moment and try again.",
        "transport": "An error occurred during analysis.",
        "validation": "The analysis service returned an incomplete result.",
    },
    "ja": {
        "rate_limited": "{seconds}秒後に再度分析を実行できます。",
        "upstream_rate_limited": "APIレート制限に達しました。しばらく待ってから再試行してください。",
        "transport": "分析中にエラーが発生しました",
        "validation": "分析結果の形式が正しくありません。",
    },
}


@dataclass(frozen=True)
class ErrorState:
    """The single visible error banner."""

    kind: ErrorKind
    message: str
    created_at: float
    expiry: float
    seconds_remaining: int | None = None


class ErrorPresentationPolicy:
    """Classify failures and decide how long their banner stays visible.

    Transport and validation banners expire ``display_seconds`` after they are
    raised. A rate-limit banner expires when the cooldown ends, which the
    cooldown ticker detects; it is never removed by the display timeout.
    """

    def __init__(self, display_seconds: float = 5.0, locale: str = "en") -> None:
        if locale not in MESSAGES:
            raise ValueError(f"Unsupported locale='{locale}'. Use one of: {sorted(MESSAGES)}")
        self.display_seconds = display_seconds
        self.locale = locale

    def _text(self, key: str) -> str:
        return MESSAGES[self.locale][key]

    def rate_limited(self, seconds_remaining: int, now: float) -> ErrorState:
        return ErrorState(
            kind=ErrorKind.RATE_LIMITED,
            message=self._text("rate_limited").format(seconds=seconds_remaining),
            created_at=now,
            expiry=now + seconds_remaining,
            seconds_remaining=seconds_remaining,
        )

    def from_exception(self, exc: AnalysisError, now: float) -> ErrorState:
        if isinstance(exc, PayloadValidationError):
            kind = ErrorKind.VALIDATION
            fallback = self._text("validation")
        elif isinstance(exc, UpstreamRateLimitError):
            kind = ErrorKind.TRANSPORT
            fallback = self._text("upstream_rate_limited")
        else:
            kind = ErrorKind.TRANSPORT
            fallback = self._text("transport")
        LOGGER.warning("Analysis failed (%s): %s", kind.value, exc.message or fallback)
        return ErrorState(
            kind=kind,
            message=exc.message or fallback,
            created_at=now,
            expiry=now + self.display_seconds,
        )

    def auto_dismisses(self, error: ErrorState) -> bool:
        return error.kind is not ErrorKind.RATE_LIMITED

    def is_expired(self, error: ErrorState, now: float) -> bool:
        return self.auto_dismisses(error) and now >= error.expiry
