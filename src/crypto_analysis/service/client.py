"""HTTP adapter for the remote analytics service."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from crypto_analysis.config import ServiceConfig
from crypto_analysis.exceptions import PayloadValidationError, TransportError, UpstreamRateLimitError
from crypto_analysis.service.payloads import AnalysisRequest, SearchResult

LOGGER = logging.getLogger(__name__)


class AnalyticsServiceClient:
    """Async client for the ``search`` and ``analyze`` operations.

    Each call is attempted exactly once. Failures are raised as
    :class:`TransportError` (HTTP 429 as :class:`UpstreamRateLimitError`);
    the body's ``error`` field becomes the message when the service sends one.

    Example:
        async with AnalyticsServiceClient(ServiceConfig()) as client:
            hits = await client.search("ether")
    """

    def __init__(
        self,
        config: ServiceConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ServiceConfig()
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url.rstrip("/"),
            timeout=self.config.timeout_seconds,
            transport=transport,
        )

    async def search(self, query: str) -> list[SearchResult]:
        LOGGER.debug("Searching assets for query=%r", query)
        data = await self._request("GET", self.config.search_path, params={"query": query})
        rows = data.get("coins", []) if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise TransportError("Unexpected search response shape.")
        results: list[SearchResult] = []
        for row in rows:
            try:
                results.append(SearchResult.model_validate(row))
            except ValidationError:
                LOGGER.debug("Skipping malformed search row: %r", row)
        return results

    async def analyze(self, request: AnalysisRequest) -> dict[str, Any]:
        path = self.config.correlation_path if request.mode == "correlation" else self.config.simulation_path
        LOGGER.info(
            "Requesting %s analysis (subject=%s, days=%d, rolling_window=%s, seq=%d)",
            request.mode,
            request.subject_id,
            request.days,
            request.rolling_window,
            request.sequence,
        )
        data = await self._request("POST", path, json=request.to_body())
        if not isinstance(data, dict):
            raise PayloadValidationError()
        return data

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            LOGGER.warning("Analytics service unreachable: %s", exc)
            raise TransportError(status_code=None) from exc

        if response.status_code == 429:
            LOGGER.warning("Analytics service rate limit reached (%s %s)", method, path)
            raise UpstreamRateLimitError()
        if response.is_error:
            message = _error_message(response)
            LOGGER.warning("Analytics service returned HTTP %d: %s", response.status_code, message)
            raise TransportError(message, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise PayloadValidationError() from exc

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AnalyticsServiceClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None
