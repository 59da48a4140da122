"""Crypto Analysis Tools Streamlit UI."""

from __future__ import annotations

import asyncio
from typing import Any

import pandas as pd
import streamlit as st

from crypto_analysis.config import AppConfig, build_config
from crypto_analysis.core.controller import AnalysisRequestController
from crypto_analysis.service.client import AnalyticsServiceClient
from crypto_analysis.service.payloads import (
    AnalysisRequest,
    CorrelationResult,
    PriceSimulationResult,
    SearchResult,
)
from crypto_analysis.viz.charts import (
    make_correlation_bars_figure,
    make_correlation_figure,
    make_probability_heatmap,
)
from crypto_analysis.viz.transforms import (
    chart_date_labels,
    conditional_insight,
    correlation_color,
    format_correlation,
    format_percentage,
    format_return_label,
    probability_table_frame,
)
try:
    from ui.state import UIState
    from ui.utils import (
        INDEX_OPTIONS,
        MetricCard,
        analyze_button_label,
        correlation_cards,
        direction_cards,
        error_banner,
        period_label,
        search_option_label,
    )
except ModuleNotFoundError:
    # Supports direct execution via: streamlit run ui/streamlit_app.py
    from state import UIState  # type: ignore
    from utils import (  # type: ignore
        INDEX_OPTIONS,
        MetricCard,
        analyze_button_label,
        correlation_cards,
        direction_cards,
        error_banner,
        period_label,
        search_option_label,
    )

STATE_KEY = "crypto_analysis_ui_state"


class _PerCallService:
    """Opens a client per call; every Streamlit rerun runs on a fresh event loop."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    async def search(self, query: str) -> list[SearchResult]:
        async with AnalyticsServiceClient(self._config.service) as client:
            return await client.search(query)

    async def analyze(self, request: AnalysisRequest) -> dict[str, Any]:
        async with AnalyticsServiceClient(self._config.service) as client:
            return await client.analyze(request)


def get_state() -> UIState:
    if STATE_KEY not in st.session_state:
        cfg = build_config()
        controller = AnalysisRequestController(_PerCallService(cfg), cfg)
        st.session_state[STATE_KEY] = UIState(
            controller=controller,
            config=cfg,
            simulation_days=cfg.analysis.simulation_days,
            index=cfg.analysis.index,
            correlation_days=cfg.analysis.correlation_days,
            rolling_window=cfg.analysis.rolling_window,
        )
    return st.session_state[STATE_KEY]


def _theme_to_template(theme: str) -> str:
    return "plotly_dark" if theme == "Dark" else "plotly_white"


def _settle(controller: AnalysisRequestController) -> None:
    controller.poll()
    if controller.scheduler.has_pending_work:
        asyncio.run(controller.scheduler.drain())


def _render_card(column: Any, card: MetricCard) -> None:
    color = card.color or "inherit"
    column.markdown(
        f"<div style='font-size:0.85rem;color:#888'>{card.label}</div>"
        f"<div style='font-size:1.6rem;font-weight:600;color:{color}'>{card.value}</div>"
        f"<div style='font-size:0.8rem;color:#888'>{card.caption}</div>",
        unsafe_allow_html=True,
    )


def _render_cards(cards: list[MetricCard], per_row: int = 4) -> None:
    for start in range(0, len(cards), per_row):
        columns = st.columns(per_row)
        for column, card in zip(columns, cards[start : start + per_row]):
            _render_card(column, card)


def _render_search(ui: UIState) -> None:
    controller = ui.controller
    state = controller.state
    st.sidebar.subheader("Asset")
    st.sidebar.markdown(f"Selected: **{state.selected.name}** ({state.selected.symbol.upper()})")

    def _on_query_change() -> None:
        controller.change_query(st.session_state["asset_query"])

    def _on_pick(result: SearchResult) -> None:
        controller.select(result)
        # widget values may only be reset from a callback
        st.session_state["asset_query"] = ""

    st.sidebar.text_input(
        "Search assets",
        key="asset_query",
        on_change=_on_query_change,
        help=f"Type at least {ui.config.search.min_query_length} characters.",
    )
    if state.dropdown_visible:
        for number, result in enumerate(state.results):
            st.sidebar.button(
                search_option_label(result),
                key=f"pick_{number}_{result.id}",
                on_click=_on_pick,
                args=(result,),
            )
    elif state.lookup_query:
        st.sidebar.caption("Searching...")


def _render_settings(ui: UIState) -> None:
    st.sidebar.subheader("Analysis")
    ui.mode = st.sidebar.radio(
        "Mode",
        options=["simulation", "correlation"],
        format_func=lambda m: "Price simulator" if m == "simulation" else "BTC vs US equities",
        index=0 if ui.mode == "simulation" else 1,
    )
    if ui.mode == "simulation":
        ui.simulation_days = st.sidebar.slider("Horizon (days)", 1, 7, ui.simulation_days)
    else:
        keys = [opt["key"] for opt in INDEX_OPTIONS]
        ui.index = st.sidebar.selectbox(
            "Equity index",
            options=keys,
            index=keys.index(ui.index),
            format_func=lambda k: next(f"{o['name']} ({o['desc']})" for o in INDEX_OPTIONS if o["key"] == k),
        )
        periods = ui.config.analysis.period_options
        ui.correlation_days = st.sidebar.selectbox(
            "Period",
            options=periods,
            index=periods.index(ui.correlation_days) if ui.correlation_days in periods else 0,
            format_func=period_label,
        )
        windows = ui.config.analysis.window_options
        ui.rolling_window = st.sidebar.selectbox(
            "Rolling window",
            options=windows,
            index=windows.index(ui.rolling_window) if ui.rolling_window in windows else 0,
            format_func=lambda w: f"{w} days",
        )
    ui.theme = st.sidebar.selectbox("Theme", options=["Light", "Dark"], index=0 if ui.theme == "Light" else 1)


def _trigger_analysis(ui: UIState) -> None:
    if ui.mode == "simulation":
        ui.controller.request_analysis("simulation", ui.simulation_days)
    else:
        ui.controller.request_analysis(
            "correlation",
            ui.correlation_days,
            rolling_window=ui.rolling_window,
            subject_id=ui.index,
        )


def _render_simulation(result: PriceSimulationResult, template: str) -> None:
    _render_cards(
        [
            MetricCard("Current price", f"${result.current_price:,.2f}"),
            MetricCard("Daily volatility", format_percentage(result.statistics.daily_volatility)),
            MetricCard(
                "Annualized return",
                format_percentage(result.statistics.annualized_return, signed=True),
            ),
            MetricCard(
                "±10% in 7 days",
                f"↑ {format_percentage(result.tail_probabilities.up_10pct)}",
                f"↓ {format_percentage(result.tail_probabilities.down_10pct)}",
            ),
        ]
    )
    frame = probability_table_frame(result)
    table = frame.rename(index=format_return_label, columns=lambda day: f"Day {day}")
    st.dataframe(table.style.format(lambda v: format_percentage(None if pd.isna(v) else v)), use_container_width=True)
    st.plotly_chart(make_probability_heatmap(result, theme=template), use_container_width=True)


def _render_correlation(result: CorrelationResult, rolling_window: int, template: str, max_bars: int) -> None:
    _render_cards(correlation_cards(result))

    if result.direction_analysis is not None:
        st.subheader("Direction agreement")
        _render_cards(direction_cards(result.direction_analysis), per_row=5)

    if result.conditional_correlation is not None:
        conditional = result.conditional_correlation
        insight = conditional_insight(conditional)
        st.subheader("Conditional correlation")
        up_col, down_col = st.columns(2)
        _render_card(
            up_col,
            MetricCard(
                "Index up days",
                format_correlation(conditional.correlation_on_up_days),
                f"{conditional.up_days_count} days" + ("" if conditional.up_reliable else " (low reliability)"),
                correlation_color(conditional.correlation_on_up_days),
            ),
        )
        _render_card(
            down_col,
            MetricCard(
                "Index down days",
                format_correlation(conditional.correlation_on_down_days),
                f"{conditional.down_days_count} days" + ("" if conditional.down_reliable else " (low reliability)"),
                correlation_color(conditional.correlation_on_down_days),
            ),
        )
        if insight.up_follows_index is not None:
            st.markdown(
                "- Up days: BTC tends to rise with the index"
                if insight.up_follows_index
                else "- Up days: BTC moves independently"
            )
        if insight.down_follows_index is not None:
            st.markdown(
                "- Down days: BTC tends to fall with the index (risk-off linkage)"
                if insight.down_follows_index
                else "- Down days: BTC moves independently (diversification benefit)"
            )
        if insight.downside_concentrated:
            st.warning("Correlation is higher on down days: limited diversification in sell-offs.")
        if insight.low_reliability:
            st.caption("Fewer than 10 days of data reduces statistical reliability.")

    st.subheader(f"Rolling correlation ({rolling_window}-day window)")
    st.plotly_chart(make_correlation_figure(result, rolling_window, theme=template), use_container_width=True)
    st.plotly_chart(
        make_correlation_bars_figure(result, max_bars=max_bars, theme=template),
        use_container_width=True,
    )
    labels = chart_date_labels(result.chart_data.dates)
    if labels:
        st.caption(" | ".join(labels))


@st.fragment(run_every=1.0)
def _render_live(ui: UIState) -> None:
    controller = ui.controller
    state = controller.state
    lookup_before = (state.results, state.lookup_query)
    _settle(controller)
    if (state.results, state.lookup_query) != lookup_before:
        # the dropdown lives outside this fragment
        st.rerun()

    if st.button(analyze_button_label(state, ui.mode), disabled=not state.analyze_enabled, type="primary"):
        _trigger_analysis(ui)
        with st.spinner("Analyzing..."):
            _settle(controller)
        st.rerun()

    banner = error_banner(state)
    if banner is not None:
        level, message = banner
        if level == "warning":
            st.warning(f"{message} ({state.cooldown_remaining}s)")
        else:
            st.error(message)

    template = _theme_to_template(ui.theme)
    result = state.result
    if isinstance(result, PriceSimulationResult):
        _render_simulation(result, template)
    elif isinstance(result, CorrelationResult):
        _render_correlation(result, ui.rolling_window, template, ui.config.chart.max_bars)
    else:
        st.info("Choose an analysis in the sidebar and run it.")


def main() -> None:
    st.set_page_config(page_title="Crypto Analysis Tools", layout="wide")
    st.title("Crypto Analysis Tools")
    st.caption("Statistical price simulation and BTC vs US equity correlation")
    ui = get_state()
    _render_search(ui)
    _render_settings(ui)
    _render_live(ui)
    st.caption("Data provided by CoinGecko & Stooq")


if __name__ == "__main__":
    main()
