import asyncio
from typing import Any

import pytest

from crypto_analysis.config import AppConfig
from crypto_analysis.core.controller import AnalysisRequestController
from crypto_analysis.core.scheduler import CooperativeScheduler
from crypto_analysis.service.payloads import AnalysisRequest, SearchResult


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeService:
    """Scripted analytics service: outcomes are consumed in call order."""

    def __init__(self) -> None:
        self.search_calls: list[str] = []
        self.analyze_calls: list[AnalysisRequest] = []
        self.search_results: dict[str, Any] = {}
        self.search_delays: dict[str, float] = {}
        self.responses: list[tuple[float, Any]] = []
        self.default_payload: Any = None

    async def search(self, query: str) -> list[SearchResult]:
        self.search_calls.append(query)
        delay = self.search_delays.get(query, 0.0)
        if delay:
            await asyncio.sleep(delay)
        outcome = self.search_results.get(query, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    async def analyze(self, request: AnalysisRequest) -> Any:
        self.analyze_calls.append(request)
        delay, outcome = self.responses.pop(0) if self.responses else (0.0, self.default_payload)
        if delay:
            await asyncio.sleep(delay)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_probability_table(skip: tuple[int, int] | None = None) -> dict[str, dict[str, float]]:
    table: dict[str, dict[str, float]] = {}
    for label in range(-10, 10):
        row = {}
        for day in range(1, 8):
            if skip == (label, day):
                continue
            row[str(day)] = round(1.0 + abs(label) * 0.5 + day * 0.1, 2)
        table[f"{label:+d}%"] = row
    return table


@pytest.fixture()
def simulation_payload() -> dict[str, Any]:
    return {
        "current_price": 65000.0,
        "statistics": {"daily_volatility": 2.5, "annualized_return": 35.2},
        "probability_table": make_probability_table(skip=(0, 3)),
        "tail_probabilities": {"up_10pct": 12.5, "down_10pct": 9.8},
    }


@pytest.fixture()
def correlation_payload() -> dict[str, Any]:
    return {
        "index_name": "S&P 500",
        "decoupling": {
            "current_correlation": 0.42,
            "average_correlation": 0.35,
            "min_correlation": -0.12,
            "max_correlation": 0.81,
            "is_decoupled": False,
            "decoupling_ratio": 0.25,
        },
        "statistics": {
            "btc_return": 12.4,
            "index_return": 3.1,
            "btc_volatility": 48.0,
            "index_volatility": 16.0,
        },
        "direction_analysis": {
            "same_direction_rate": 58.3,
            "same_direction_days": 35,
            "total_days": 60,
            "both_up_days": 20,
            "both_down_days": 15,
            "btc_up_index_down": 12,
            "btc_down_index_up": 13,
        },
        "conditional_correlation": {
            "correlation_on_up_days": 0.21,
            "correlation_on_down_days": 0.55,
            "up_days_count": 32,
            "down_days_count": 8,
            "up_reliable": True,
            "down_reliable": False,
        },
        "chart_data": {
            "dates": ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05"],
            "correlations": [0.8, 0.5, None, 0.2, 0.75],
        },
    }


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def service() -> FakeService:
    return FakeService()


@pytest.fixture()
def scheduler(clock: FakeClock) -> CooperativeScheduler:
    return CooperativeScheduler(clock)


@pytest.fixture()
def controller(service: FakeService, scheduler: CooperativeScheduler) -> AnalysisRequestController:
    return AnalysisRequestController(service, AppConfig(), scheduler)


def settle(controller: AnalysisRequestController) -> None:
    asyncio.run(controller.settle())


def tick(controller: AnalysisRequestController, clock: FakeClock, seconds: float) -> None:
    clock.advance(seconds)
    settle(controller)
