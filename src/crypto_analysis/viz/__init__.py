"""Visualization subpackage exports."""

from crypto_analysis.viz.charts import (
    correlation_svg,
    make_correlation_bars_figure,
    make_correlation_figure,
    make_probability_heatmap,
    plot_rolling_correlation,
)
from crypto_analysis.viz.transforms import (
    MISSING,
    CorrelationClass,
    Viewport,
    build_polyline,
    classify_correlation,
    downsample_for_bars,
    format_correlation,
    format_percentage,
    lookup_probability_cell,
    probability_table_frame,
)

__all__ = [
    "MISSING",
    "CorrelationClass",
    "Viewport",
    "classify_correlation",
    "build_polyline",
    "downsample_for_bars",
    "lookup_probability_cell",
    "format_percentage",
    "format_correlation",
    "probability_table_frame",
    "make_correlation_figure",
    "make_correlation_bars_figure",
    "make_probability_heatmap",
    "plot_rolling_correlation",
    "correlation_svg",
]
