"""UI helper utilities (pure logic, testable without Streamlit)."""

from __future__ import annotations

from dataclasses import dataclass

from crypto_analysis.core.state import SessionState
from crypto_analysis.service.payloads import CorrelationResult, DirectionAnalysis, SearchResult
from crypto_analysis.viz.transforms import (
    correlation_color,
    correlation_label,
    format_correlation,
    format_percentage,
    volatility_ratio,
)

POSITIVE_COLOR = "#22c55e"
NEGATIVE_COLOR = "#ef4444"

INDEX_OPTIONS = [
    {"key": "sp500", "name": "S&P 500", "desc": "US large caps"},
    {"key": "nasdaq", "name": "NASDAQ", "desc": "Tech stocks"},
]


@dataclass(frozen=True)
class MetricCard:
    label: str
    value: str
    caption: str = ""
    color: str | None = None


def period_label(days: int) -> str:
    return "1 year" if days == 365 else f"{days} days"


def search_option_label(result: SearchResult) -> str:
    rank = f" #{result.market_cap_rank}" if result.market_cap_rank is not None else ""
    return f"{result.name} ({result.symbol.upper()}){rank}"


def analyze_button_label(state: SessionState, mode: str) -> str:
    if state.loading:
        return "Analyzing..."
    if state.cooldown_remaining > 0:
        return f"Wait {state.cooldown_remaining}s"
    return "Run simulation" if mode == "simulation" else "Run correlation analysis"


def error_banner(state: SessionState) -> tuple[str, str] | None:
    """Streamlit level and text for the current error, or None."""
    error = state.error
    if error is None:
        return None
    if state.rate_limited:
        return "warning", error.message
    return "error", error.message


def signed_color(value: float) -> str:
    return POSITIVE_COLOR if value >= 0 else NEGATIVE_COLOR


def correlation_cards(result: CorrelationResult, locale: str = "en") -> list[MetricCard]:
    decoupling = result.decoupling
    stats = result.statistics
    cards = [
        MetricCard(
            label="Current correlation",
            value=format_correlation(decoupling.current_correlation),
            caption=correlation_label(decoupling.current_correlation, locale),
            color=correlation_color(decoupling.current_correlation),
        ),
        MetricCard(
            label="Average correlation",
            value=format_correlation(decoupling.average_correlation),
            caption=(
                f"min {format_correlation(decoupling.min_correlation)} / "
                f"max {format_correlation(decoupling.max_correlation)}"
            ),
        ),
        MetricCard(
            label="Decoupled",
            value="Yes" if decoupling.is_decoupled else "No",
            caption=f"low-correlation share {format_percentage(decoupling.decoupling_ratio * 100.0, decimals=1)}",
            color=NEGATIVE_COLOR if decoupling.is_decoupled else POSITIVE_COLOR,
        ),
        MetricCard(
            label="Period return",
            value=f"BTC {format_percentage(stats.btc_return, signed=True)}",
            caption=f"{result.index_name or 'Index'} {format_percentage(stats.index_return, signed=True)}",
            color=signed_color(stats.btc_return),
        ),
    ]
    ratio = volatility_ratio(stats)
    if ratio is not None:
        cards.append(
            MetricCard(
                label="Volatility (annualized)",
                value=f"{ratio:.1f}x",
                caption=(
                    f"BTC {format_percentage(stats.btc_volatility)} / "
                    f"{result.index_name or 'Index'} {format_percentage(stats.index_volatility)}"
                ),
            )
        )
    return cards


def direction_cards(direction: DirectionAnalysis) -> list[MetricCard]:
    return [
        MetricCard(
            label="Same direction",
            value=format_percentage(direction.same_direction_rate, decimals=1),
            caption=f"{direction.same_direction_days} / {direction.total_days} days",
        ),
        MetricCard(label="Both up", value=f"{direction.both_up_days} days", color=POSITIVE_COLOR),
        MetricCard(label="Both down", value=f"{direction.both_down_days} days", color=NEGATIVE_COLOR),
        MetricCard(label="BTC up / index down", value=f"{direction.btc_up_index_down} days"),
        MetricCard(label="BTC down / index up", value=f"{direction.btc_down_index_up} days"),
    ]
