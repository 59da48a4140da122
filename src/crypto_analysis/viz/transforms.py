"""Pure transforms from analysis payloads to chart- and table-ready values.

Nothing here re-derives statistics; values are classified, positioned and
formatted exactly as the service computed them.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

import numpy as np
import pandas as pd

from crypto_analysis.service.payloads import (
    DAY_OFFSETS,
    RETURN_LABELS,
    ConditionalCorrelation,
    CorrelationStatistics,
    PriceSimulationResult,
)

T = TypeVar("T")

STRONG_THRESHOLD = 0.7
MODERATE_THRESHOLD = 0.3
DOWNSIDE_GAP = 0.1

Point = tuple[float, float]


class CorrelationClass(str, Enum):
    STRONG_POSITIVE = "strong positive"
    MODERATE = "moderate"
    WEAK = "weak"
    NEGATIVE = "negative/decoupled"
    UNKNOWN = "unknown"


CORRELATION_COLORS = {
    CorrelationClass.STRONG_POSITIVE: "#22c55e",
    CorrelationClass.MODERATE: "#eab308",
    CorrelationClass.WEAK: "#ef4444",
    CorrelationClass.NEGATIVE: "#ef4444",
    CorrelationClass.UNKNOWN: "#666",
}

CORRELATION_LABELS_JA = {
    CorrelationClass.STRONG_POSITIVE: "強い正の相関",
    CorrelationClass.MODERATE: "中程度の相関",
    CorrelationClass.WEAK: "弱い相関",
    CorrelationClass.NEGATIVE: "負の相関",
    CorrelationClass.UNKNOWN: "-",
}


class Missing(Enum):
    """Sentinel for a probability cell the table does not contain."""

    MISSING = "missing"

    def __repr__(self) -> str:
        return "MISSING"


MISSING = Missing.MISSING


@dataclass(frozen=True)
class Viewport:
    """Chart drawing area: x spans ``left``..``left + width``, y = baseline - value * scale."""

    left: float = 50.0
    width: float = 730.0
    baseline: float = 140.0
    scale: float = 120.0

    @property
    def right(self) -> float:
        return self.left + self.width


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def classify_correlation(value: float | None) -> CorrelationClass:
    """Bucket a correlation coefficient; thresholds include their lower bound."""
    if _is_absent(value):
        return CorrelationClass.UNKNOWN
    if value >= STRONG_THRESHOLD:
        return CorrelationClass.STRONG_POSITIVE
    if value >= MODERATE_THRESHOLD:
        return CorrelationClass.MODERATE
    if value >= 0:
        return CorrelationClass.WEAK
    return CorrelationClass.NEGATIVE


def correlation_color(value: float | None) -> str:
    return CORRELATION_COLORS[classify_correlation(value)]


def correlation_label(value: float | None, locale: str = "en") -> str:
    klass = classify_correlation(value)
    if locale == "ja":
        return CORRELATION_LABELS_JA[klass]
    return klass.value


def build_polyline(
    series: Sequence[float | None] | Sequence[tuple[int, float | None]],
    viewport: Viewport | None = None,
) -> list[list[Point]]:
    """Map a series onto the viewport as one or more disjoint polylines.

    ``series`` holds values (index = position) or ``(index, value)`` pairs.
    x is placed by index position across the full width, so gaps do not
    stretch the remaining points. A ``None`` value ends the current segment;
    nothing is interpolated across it.
    """
    view = viewport or Viewport()
    pairs = [item if isinstance(item, tuple) else (i, item) for i, item in enumerate(series)]
    if not pairs:
        return []
    first = pairs[0][0]
    span = pairs[-1][0] - first

    segments: list[list[Point]] = []
    current: list[Point] = []
    for index, value in pairs:
        if _is_absent(value):
            if current:
                segments.append(current)
                current = []
            continue
        x = view.left if span == 0 else view.left + (index - first) / span * view.width
        y = view.baseline - value * view.scale
        current.append((x, y))
    if current:
        segments.append(current)
    return segments


def polyline_points(segment: Sequence[Point]) -> str:
    """SVG ``points`` attribute for one segment."""
    return " ".join(f"{x:g},{y:g}" for x, y in segment)


def downsample_for_bars(series: Sequence[T], max_bars: int) -> list[T]:
    """Keep every ``ceil(len / max_bars)``-th element starting at index 0."""
    if max_bars < 1:
        raise ValueError("max_bars must be at least 1")
    if not series:
        return []
    stride = math.ceil(len(series) / max_bars)
    return list(series[::stride])


def lookup_probability_cell(table: Any, return_label: int, day: int) -> float | Missing:
    """Stored percentage for ``[return_label][day]``, or :data:`MISSING`."""
    if isinstance(table, PriceSimulationResult):
        table = table.probability_table
    if not isinstance(table, Mapping):
        return MISSING
    row = table.get(return_label)
    if row is None:
        row = table.get(f"{return_label:+d}", table.get(str(return_label)))
    if not isinstance(row, Mapping):
        return MISSING
    value = row.get(day, row.get(str(day)))
    if _is_absent(value) or isinstance(value, bool) or not isinstance(value, (int, float)):
        return MISSING
    return float(value)


def format_percentage(value: float | Missing | None, decimals: int = 2, signed: bool = False) -> str:
    if value is MISSING or _is_absent(value):
        return "-"
    fmt = f"+.{decimals}f" if signed else f".{decimals}f"
    return f"{value:{fmt}}%"


def format_correlation(value: float | None) -> str:
    if _is_absent(value):
        return "-"
    return f"{value:.3f}"


def format_return_label(return_label: int) -> str:
    return f"{return_label:+d}%"


def _cell_or_nan(table: Any, return_label: int, day: int) -> float:
    cell = lookup_probability_cell(table, return_label, day)
    return np.nan if cell is MISSING else cell


def probability_table_frame(result: PriceSimulationResult) -> pd.DataFrame:
    """Return labels +9..-10 as rows, days 1..7 as columns; missing cells are NaN."""
    data = [
        [_cell_or_nan(result.probability_table, label, day) for day in DAY_OFFSETS]
        for label in RETURN_LABELS
    ]
    frame = pd.DataFrame(data, index=list(RETURN_LABELS), columns=list(DAY_OFFSETS), dtype=float)
    frame.index.name = "return_pct"
    frame.columns.name = "day"
    return frame


def chart_date_labels(dates: Sequence[str]) -> tuple[str, ...]:
    """First, middle and last date for the x axis."""
    if not dates:
        return ()
    return (dates[0], dates[len(dates) // 2], dates[-1])


def volatility_ratio(statistics: CorrelationStatistics) -> float | None:
    btc, index = statistics.btc_volatility, statistics.index_volatility
    if _is_absent(btc) or _is_absent(index) or index == 0:
        return None
    return btc / index


@dataclass(frozen=True)
class ConditionalInsight:
    up_follows_index: bool | None
    down_follows_index: bool | None
    downside_concentrated: bool
    low_reliability: bool


def conditional_insight(conditional: ConditionalCorrelation) -> ConditionalInsight:
    up = conditional.correlation_on_up_days
    down = conditional.correlation_on_down_days
    return ConditionalInsight(
        up_follows_index=None if up is None else up >= MODERATE_THRESHOLD,
        down_follows_index=None if down is None else down >= MODERATE_THRESHOLD,
        downside_concentrated=up is not None and down is not None and down > up + DOWNSIDE_GAP,
        low_reliability=not (conditional.up_reliable and conditional.down_reliable),
    )
