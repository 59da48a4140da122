"""Typed Streamlit session state models for the analysis UI."""

from __future__ import annotations

from dataclasses import dataclass

from crypto_analysis.config import AppConfig
from crypto_analysis.core.controller import AnalysisRequestController


@dataclass
class UIState:
    """Session-backed container: the controller plus the user's form choices."""

    controller: AnalysisRequestController
    config: AppConfig
    mode: str = "simulation"
    simulation_days: int = 7
    index: str = "sp500"
    correlation_days: int = 90
    rolling_window: int = 30
    theme: str = "Light"
