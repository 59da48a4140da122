"""Exceptions raised by the service adapter and payload parsing."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for failures surfaced to the user."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "")
        self.message = message


class TransportError(AnalysisError):
    """The analytics service was unreachable or rejected the request."""

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamRateLimitError(TransportError):
    """The analytics service answered HTTP 429."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, status_code=429)


class PayloadValidationError(AnalysisError):
    """A successful response lacked required fields."""
