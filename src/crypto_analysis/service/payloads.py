"""Typed analysis payloads returned by the analytics service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from crypto_analysis.exceptions import PayloadValidationError

LOGGER = logging.getLogger(__name__)

AnalysisMode = Literal["simulation", "correlation"]
ANALYSIS_MODES: tuple[str, ...] = get_args(AnalysisMode)
Correlation = Annotated[float, Field(ge=-1.0, le=1.0)]

RETURN_LABELS = tuple(range(9, -11, -1))
DAY_OFFSETS = tuple(range(1, 8))


@dataclass(frozen=True)
class Asset:
    id: str
    symbol: str
    name: str


DEFAULT_ASSET = Asset(id="bitcoin", symbol="btc", name="Bitcoin")


@dataclass(frozen=True)
class AnalysisRequest:
    """One issued analysis call; ``sequence`` orders it against every other."""

    mode: AnalysisMode
    subject_id: str
    days: int
    sequence: int
    rolling_window: int | None = None

    def to_body(self) -> dict[str, Any]:
        if self.mode == "correlation":
            return {"index": self.subject_id, "days": self.days, "rolling_window": self.rolling_window}
        return {"coin_id": self.subject_id, "days": self.days}


class SearchResult(BaseModel):
    """One lookup hit, in the order the service returned it."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    symbol: str
    name: str
    market_cap_rank: int | None = None

    def to_asset(self) -> Asset:
        return Asset(id=self.id, symbol=self.symbol, name=self.name)


def _parse_label(key: Any) -> int:
    if isinstance(key, str):
        key = key.strip().rstrip("%").strip()
    return int(key)


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class SimulationStatistics(_Payload):
    daily_volatility: float
    annualized_return: float


class TailProbabilities(_Payload):
    up_10pct: float | None = None
    down_10pct: float | None = None


class PriceSimulationResult(_Payload):
    """Probability of each return bucket over the next seven days."""

    kind: Literal["simulation"] = "simulation"
    current_price: float
    statistics: SimulationStatistics
    probability_table: dict[int, dict[int, float]]
    tail_probabilities: TailProbabilities = Field(default_factory=TailProbabilities)

    @field_validator("probability_table", mode="before")
    @classmethod
    def _normalize_table_keys(cls, value: Any) -> Any:
        # service keys look like "+3%" / "-10" for buckets and "1".."7" for days
        if not isinstance(value, dict):
            return value
        return {
            _parse_label(label): (
                {_parse_label(day): pct for day, pct in row.items()} if isinstance(row, dict) else row
            )
            for label, row in value.items()
        }


class DecouplingMetrics(_Payload):
    current_correlation: Correlation | None = None
    average_correlation: Correlation | None = None
    min_correlation: Correlation | None = None
    max_correlation: Correlation | None = None
    is_decoupled: bool
    decoupling_ratio: float = Field(ge=0.0, le=1.0)


class CorrelationStatistics(_Payload):
    btc_return: float
    index_return: float
    btc_volatility: float | None = None
    index_volatility: float | None = None


class DirectionAnalysis(_Payload):
    same_direction_rate: float
    same_direction_days: int
    total_days: int
    both_up_days: int
    both_down_days: int
    btc_up_index_down: int
    btc_down_index_up: int


class ConditionalCorrelation(_Payload):
    correlation_on_up_days: Correlation | None = None
    correlation_on_down_days: Correlation | None = None
    up_days_count: int = 0
    down_days_count: int = 0
    up_reliable: bool = True
    down_reliable: bool = True


class ChartData(_Payload):
    dates: list[str]
    correlations: list[Correlation | None]

    @model_validator(mode="after")
    def _parallel_series(self) -> ChartData:
        if len(self.dates) != len(self.correlations):
            raise ValueError("chart_data.dates and chart_data.correlations differ in length")
        return self


class CorrelationResult(_Payload):
    """Rolling BTC/index correlation with decoupling diagnostics."""

    kind: Literal["correlation"] = "correlation"
    index_name: str = ""
    decoupling: DecouplingMetrics
    statistics: CorrelationStatistics
    direction_analysis: DirectionAnalysis | None = None
    conditional_correlation: ConditionalCorrelation | None = None
    chart_data: ChartData


AnalysisResult = PriceSimulationResult | CorrelationResult

_MODELS: dict[str, type[PriceSimulationResult] | type[CorrelationResult]] = {
    "simulation": PriceSimulationResult,
    "correlation": CorrelationResult,
}


def parse_analysis_payload(mode: AnalysisMode, payload: Any) -> AnalysisResult:
    """Validate a raw service payload into the variant for ``mode``."""
    try:
        model = _MODELS[mode]
    except KeyError as exc:
        raise ValueError(f"Unsupported analysis mode='{mode}'. Use simulation|correlation.") from exc
    if not isinstance(payload, dict):
        LOGGER.warning("Expected a JSON object from the service, got %s", type(payload).__name__)
        raise PayloadValidationError()
    # the variant tag is decided by the request, not the response body
    body = {key: value for key, value in payload.items() if key != "kind"}
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        LOGGER.warning("Analysis result is missing or has invalid fields: %s", fields)
        raise PayloadValidationError() from exc
