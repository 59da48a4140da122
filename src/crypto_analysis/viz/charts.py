"""Plotly and matplotlib figures built from the pure transforms."""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import plotly.express as px
import plotly.graph_objects as go

from crypto_analysis.config import ChartConfig
from crypto_analysis.service.payloads import CorrelationResult, PriceSimulationResult
from crypto_analysis.viz.transforms import (
    CORRELATION_COLORS,
    MODERATE_THRESHOLD,
    STRONG_THRESHOLD,
    CorrelationClass,
    Viewport,
    build_polyline,
    chart_date_labels,
    correlation_color,
    downsample_for_bars,
    format_return_label,
    polyline_points,
    probability_table_frame,
)

LINE_COLOR = "#8b5cf6"

ZONES = (
    (STRONG_THRESHOLD, 1.0, CORRELATION_COLORS[CorrelationClass.STRONG_POSITIVE], "Strong"),
    (MODERATE_THRESHOLD, STRONG_THRESHOLD, CORRELATION_COLORS[CorrelationClass.MODERATE], "Moderate"),
    (-1.0, MODERATE_THRESHOLD, CORRELATION_COLORS[CorrelationClass.WEAK], "Weak / negative"),
)


def _value_segments(correlations: list[float | None]) -> list[list[tuple[float, float]]]:
    """Segments in (index, value) coordinates."""
    span = max(len(correlations) - 1, 0)
    identity = Viewport(left=0.0, width=float(span), baseline=0.0, scale=-1.0)
    return build_polyline(correlations, identity)


def make_correlation_figure(
    result: CorrelationResult,
    rolling_window: int | None = None,
    theme: str = "plotly_white",
) -> go.Figure:
    """Rolling correlation line over strong/moderate/weak zone bands.

    Gaps in the series stay gaps: each unbroken run is its own trace.
    """
    dates = result.chart_data.dates
    fig = go.Figure()
    for low, high, color, label in ZONES:
        fig.add_hrect(y0=low, y1=high, fillcolor=color, opacity=0.1, line_width=0, annotation_text=label)
    for threshold in (STRONG_THRESHOLD, MODERATE_THRESHOLD):
        fig.add_hline(y=threshold, line=dict(color="#666", dash="dash", width=1))

    for number, segment in enumerate(_value_segments(result.chart_data.correlations)):
        fig.add_trace(
            go.Scatter(
                x=[dates[int(round(x))] for x, _ in segment],
                y=[y for _, y in segment],
                mode="lines" if len(segment) > 1 else "markers",
                name="Rolling correlation",
                legendgroup="rolling",
                showlegend=number == 0,
                line=dict(color=LINE_COLOR, width=2),
                marker=dict(color=LINE_COLOR),
                hovertemplate="%{x}<br>corr=%{y:.3f}<extra></extra>",
            )
        )

    title = "BTC vs {0} rolling correlation".format(result.index_name or "index")
    if rolling_window:
        title += f" ({rolling_window}-day window)"
    fig.update_layout(title=title, template=theme, height=360)
    fig.update_yaxes(title_text="Correlation", range=[-1.0, 1.0])
    labels = chart_date_labels(dates)
    if labels:
        fig.update_xaxes(tickmode="array", tickvals=list(labels), ticktext=list(labels))
    return fig


def make_correlation_bars_figure(
    result: CorrelationResult,
    max_bars: int = 50,
    theme: str = "plotly_white",
) -> go.Figure:
    """Downsampled bar view of the rolling correlation, colored by class."""
    pairs = [
        (date, corr)
        for date, corr in zip(result.chart_data.dates, result.chart_data.correlations)
        if corr is not None
    ]
    kept = downsample_for_bars(pairs, max_bars)
    fig = go.Figure(
        go.Bar(
            x=[date for date, _ in kept],
            y=[corr for _, corr in kept],
            marker_color=[correlation_color(corr) for _, corr in kept],
            hovertemplate="%{x}<br>corr=%{y:.3f}<extra></extra>",
        )
    )
    fig.update_layout(title="Rolling correlation (sampled)", template=theme, height=300)
    fig.update_yaxes(range=[-1.0, 1.0])
    return fig


def make_probability_heatmap(
    result: PriceSimulationResult,
    theme: str = "plotly_white",
) -> go.Figure:
    """Probability (%) per return bucket and day; missing cells stay blank."""
    frame = probability_table_frame(result)
    fig = px.imshow(
        frame.to_numpy(),
        x=[f"Day {day}" for day in frame.columns],
        y=[format_return_label(label) for label in frame.index],
        color_continuous_scale="Blues",
        aspect="auto",
        text_auto=".1f",
        template=theme,
    )
    fig.update_layout(title="Price change probability (%)", height=560)
    fig.update_xaxes(side="top")
    return fig


def plot_rolling_correlation(
    result: CorrelationResult,
    title: str | None = None,
    show: bool = True,
    save_path: str | None = None,
    backend: str = "plotly",
):
    """Plot the rolling correlation series with zone bands."""
    chart_title = title or f"BTC vs {result.index_name or 'index'} rolling correlation"

    if backend == "matplotlib":
        dates = result.chart_data.dates
        fig, ax = plt.subplots(figsize=(10, 4))
        for low, high, color, label in ZONES:
            ax.axhspan(low, high, color=color, alpha=0.1, label=label)
        for number, segment in enumerate(_value_segments(result.chart_data.correlations)):
            ax.plot(
                [x for x, _ in segment],
                [y for _, y in segment],
                color=LINE_COLOR,
                marker="o" if len(segment) == 1 else None,
                label="Rolling correlation" if number == 0 else None,
            )
        labels = chart_date_labels(dates)
        if labels:
            ax.set_xticks([0, len(dates) // 2, len(dates) - 1])
            ax.set_xticklabels(list(labels))
        ax.set_ylim(-1.0, 1.0)
        ax.set_ylabel("Correlation")
        ax.set_title(chart_title)
        ax.legend(loc="lower left")
        fig.tight_layout()
        if save_path:
            fig.savefig(save_path)
        if show:
            plt.show()
        return fig

    fig = make_correlation_figure(result)
    fig.update_layout(title=chart_title)

    if save_path:
        _save_plotly(fig, save_path)
    if show:
        fig.show()
    return fig


def _save_plotly(fig: go.Figure, save_path: str) -> None:
    out = Path(save_path)
    if out.suffix.lower() == ".html":
        fig.write_html(str(out))
    else:
        fig.write_image(str(out))


def viewport_from_config(chart: ChartConfig) -> Viewport:
    return Viewport(left=chart.left, width=chart.width, baseline=chart.baseline, scale=chart.scale)


def correlation_svg(result: CorrelationResult, chart: ChartConfig | None = None) -> str:
    """Standalone SVG of the rolling correlation, one ``<polyline>`` per unbroken run."""
    view = viewport_from_config(chart or ChartConfig())
    width = view.right + 20
    height = view.baseline + view.scale + 40
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width:g} {height:g}">',
        f'<line x1="{view.left:g}" y1="{view.baseline:g}" x2="{view.right:g}" y2="{view.baseline:g}" '
        'stroke="#666" stroke-width="1"/>',
    ]
    for threshold in (STRONG_THRESHOLD, MODERATE_THRESHOLD):
        y = view.baseline - threshold * view.scale
        color = correlation_color(threshold)
        parts.append(
            f'<line x1="{view.left:g}" y1="{y:g}" x2="{view.right:g}" y2="{y:g}" '
            f'stroke="{color}" stroke-dasharray="5,5" stroke-width="1"/>'
        )
    for segment in build_polyline(result.chart_data.correlations, view):
        if len(segment) == 1:
            x, y = segment[0]
            parts.append(f'<circle cx="{x:g}" cy="{y:g}" r="2" fill="{LINE_COLOR}"/>')
        else:
            parts.append(
                f'<polyline fill="none" stroke="{LINE_COLOR}" stroke-width="2" '
                f'points="{polyline_points(segment)}"/>'
            )
    labels = chart_date_labels(result.chart_data.dates)
    if labels:
        label_y = view.baseline + view.scale + 20
        positions = (view.left, view.left + view.width / 2, view.right)
        for x, label, anchor in zip(positions, labels, ("start", "middle", "end")):
            parts.append(
                f'<text x="{x:g}" y="{label_y:g}" font-size="12" text-anchor="{anchor}">{label}</text>'
            )
    parts.append("</svg>")
    return "\n".join(parts)
