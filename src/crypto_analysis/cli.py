"""Command line interface for the crypto analysis tools."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd
import typer

from crypto_analysis.config import AppConfig, build_config, merge_config
from crypto_analysis.core.controller import AnalysisRequestController
from crypto_analysis.core.state import SessionState
from crypto_analysis.service.client import AnalyticsServiceClient
from crypto_analysis.service.payloads import CorrelationResult, PriceSimulationResult, SearchResult
from crypto_analysis.viz.charts import correlation_svg, plot_rolling_correlation
from crypto_analysis.viz.transforms import (
    chart_date_labels,
    classify_correlation,
    conditional_insight,
    format_correlation,
    format_percentage,
    probability_table_frame,
    volatility_ratio,
)

app = typer.Typer(help="Price probability and BTC/equity correlation analysis")
LOGGER = logging.getLogger(__name__)

INDEX_CHOICES = ("sp500", "nasdaq")


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    if quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load_config(config_path: str | None, api_url: str | None = None) -> AppConfig:
    cfg = build_config(config_path=config_path)
    if api_url:
        cfg = merge_config(cfg, {"service": {"base_url": api_url}})
    return cfg


def _emit(payload: Any, out_format: str) -> None:
    if out_format == "json":
        typer.echo(json.dumps(payload, indent=2, default=str))
    else:
        if isinstance(payload, dict):
            for key, value in payload.items():
                typer.echo(f"{key}: {value}")
        else:
            typer.echo(str(payload))


def _run_analysis(
    cfg: AppConfig,
    mode: str,
    days: int,
    rolling_window: int | None = None,
    subject_id: str | None = None,
) -> SessionState:
    async def _session() -> SessionState:
        async with AnalyticsServiceClient(cfg.service) as client:
            controller = AnalysisRequestController(client, cfg)
            controller.request_analysis(mode, days, rolling_window=rolling_window, subject_id=subject_id)
            await controller.settle()
            return controller.state

    state = asyncio.run(_session())
    if state.error is not None:
        typer.echo(f"Error: {state.error.message}", err=True)
        raise typer.Exit(code=1)
    return state


def _run_search(cfg: AppConfig, query: str) -> list[SearchResult]:
    async def _session() -> list[SearchResult]:
        async with AnalyticsServiceClient(cfg.service) as client:
            return await client.search(query)

    return asyncio.run(_session())


def _simulation_summary(result: PriceSimulationResult) -> dict[str, Any]:
    return {
        "current_price": result.current_price,
        "daily_volatility": format_percentage(result.statistics.daily_volatility),
        "annualized_return": format_percentage(result.statistics.annualized_return, signed=True),
        "probability_up_10pct": format_percentage(result.tail_probabilities.up_10pct),
        "probability_down_10pct": format_percentage(result.tail_probabilities.down_10pct),
    }


def _correlation_summary(result: CorrelationResult) -> dict[str, Any]:
    decoupling = result.decoupling
    stats = result.statistics
    summary: dict[str, Any] = {
        "index": result.index_name,
        "current_correlation": format_correlation(decoupling.current_correlation),
        "classification": classify_correlation(decoupling.current_correlation).value,
        "average_correlation": format_correlation(decoupling.average_correlation),
        "min_correlation": format_correlation(decoupling.min_correlation),
        "max_correlation": format_correlation(decoupling.max_correlation),
        "is_decoupled": decoupling.is_decoupled,
        "decoupling_ratio": format_percentage(decoupling.decoupling_ratio * 100.0, decimals=1),
        "btc_return": format_percentage(stats.btc_return, signed=True),
        "index_return": format_percentage(stats.index_return, signed=True),
    }
    ratio = volatility_ratio(stats)
    if ratio is not None:
        summary["volatility_ratio"] = f"{ratio:.1f}x"
    if result.direction_analysis is not None:
        direction = result.direction_analysis
        summary["same_direction_rate"] = format_percentage(direction.same_direction_rate, decimals=1)
        summary["same_direction_days"] = f"{direction.same_direction_days}/{direction.total_days}"
    if result.conditional_correlation is not None:
        conditional = result.conditional_correlation
        insight = conditional_insight(conditional)
        summary["correlation_on_up_days"] = format_correlation(conditional.correlation_on_up_days)
        summary["correlation_on_down_days"] = format_correlation(conditional.correlation_on_down_days)
        summary["downside_concentrated"] = insight.downside_concentrated
        summary["low_reliability"] = insight.low_reliability
    labels = chart_date_labels(result.chart_data.dates)
    if labels:
        summary["period"] = f"{labels[0]} .. {labels[-1]}"
    return summary


@app.command("search")
def search(
    query: str = typer.Argument(..., help="Asset name or symbol."),
    out_format: str = typer.Option("text", "--format", help="text|json"),
    api_url: str | None = typer.Option(None, help="Analytics service base URL."),
    config: str | None = typer.Option(None, help="Path to YAML config."),
    verbose: bool = typer.Option(False, "--verbose"),
    quiet: bool = typer.Option(False, "--quiet"),
) -> None:
    """Look up assets by name or symbol."""
    _configure_logging(verbose, quiet)
    cfg = _load_config(config, api_url)
    if len(query) < cfg.search.min_query_length:
        raise typer.BadParameter(
            f"query must be at least {cfg.search.min_query_length} characters long."
        )
    results = _run_search(cfg, query)
    if out_format == "json":
        _emit([result.model_dump() for result in results], out_format)
        return
    if not results:
        typer.echo("No matching assets.")
    for result in results:
        rank = f"#{result.market_cap_rank}" if result.market_cap_rank is not None else "-"
        typer.echo(f"{result.id}\t{result.symbol.upper()}\t{result.name}\t{rank}")


@app.command("simulate")
def simulate(
    asset: str | None = typer.Option(None, help="Asset id (defaults to the configured asset)."),
    days: int | None = typer.Option(None, help="Horizon in days (1-7)."),
    show_table: bool = typer.Option(True, "--table/--no-table", help="Print the probability table."),
    out_format: str = typer.Option("text", "--format", help="text|json"),
    api_url: str | None = typer.Option(None, help="Analytics service base URL."),
    config: str | None = typer.Option(None, help="Path to YAML config."),
    verbose: bool = typer.Option(False, "--verbose"),
    quiet: bool = typer.Option(False, "--quiet"),
) -> None:
    """Run a price-probability simulation for one asset."""
    _configure_logging(verbose, quiet)
    cfg = _load_config(config, api_url)
    horizon = days if days is not None else cfg.analysis.simulation_days
    if not 1 <= horizon <= 7:
        raise typer.BadParameter("days must be between 1 and 7.")

    state = _run_analysis(cfg, "simulation", horizon, subject_id=asset or cfg.analysis.asset.id)
    result = state.result
    if not isinstance(result, PriceSimulationResult):
        raise typer.BadParameter("Service returned no simulation result.")

    if out_format == "json":
        payload = _simulation_summary(result)
        frame = probability_table_frame(result)
        payload["probability_table"] = {
            f"{label:+d}": {str(day): (None if pd.isna(value) else float(value)) for day, value in row.items()}
            for label, row in frame.iterrows()
        }
        _emit(payload, out_format)
        return
    _emit(_simulation_summary(result), out_format)
    if show_table:
        typer.echo(probability_table_frame(result).to_string(float_format=lambda v: f"{v:.2f}", na_rep="-"))


@app.command("correlate")
def correlate(
    index: str | None = typer.Option(None, help="Equity index: sp500|nasdaq."),
    days: int | None = typer.Option(None, help="Analysis period in days."),
    rolling_window: int | None = typer.Option(None, help="Rolling window in days."),
    save_chart: str | None = typer.Option(
        None,
        help="Chart output path: .html (plotly), .svg (polyline) or an image suffix (matplotlib).",
    ),
    out_format: str = typer.Option("text", "--format", help="text|json"),
    api_url: str | None = typer.Option(None, help="Analytics service base URL."),
    config: str | None = typer.Option(None, help="Path to YAML config."),
    verbose: bool = typer.Option(False, "--verbose"),
    quiet: bool = typer.Option(False, "--quiet"),
) -> None:
    """Analyze BTC correlation against a US equity index."""
    _configure_logging(verbose, quiet)
    cfg = _load_config(config, api_url)
    index_key = index or cfg.analysis.index
    if index_key not in INDEX_CHOICES:
        raise typer.BadParameter(f"index must be one of: {', '.join(INDEX_CHOICES)}")
    period = days if days is not None else cfg.analysis.correlation_days
    window = rolling_window if rolling_window is not None else cfg.analysis.rolling_window
    if window >= period:
        raise typer.BadParameter("rolling window must be shorter than the analysis period.")

    state = _run_analysis(cfg, "correlation", period, rolling_window=window, subject_id=index_key)
    result = state.result
    if not isinstance(result, CorrelationResult):
        raise typer.BadParameter("Service returned no correlation result.")

    summary = _correlation_summary(result)
    if save_chart:
        out = Path(save_chart)
        out.parent.mkdir(parents=True, exist_ok=True)
        suffix = out.suffix.lower()
        if suffix == ".svg":
            out.write_text(correlation_svg(result, cfg.chart), encoding="utf-8")
        else:
            backend = "plotly" if suffix == ".html" else "matplotlib"
            plot_rolling_correlation(result, show=False, save_path=str(out), backend=backend)
        LOGGER.info("Saved correlation chart: %s", out)
        summary["chart"] = str(out)
    _emit(summary, out_format)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
