"""Configuration models and helpers for the crypto analysis front-end."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field


Locale = Literal["en", "ja"]
IndexKey = Literal["sp500", "nasdaq"]

API_URL_ENV = "CRYPTO_ANALYSIS_API_URL"
DEFAULT_API_URL = "https://crypto-price-simulator-backend.onrender.com"


class ServiceConfig(BaseModel):
    """Remote analytics service endpoints."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = DEFAULT_API_URL
    timeout_seconds: float = 30.0
    search_path: str = "/api/search"
    simulation_path: str = "/api/simulate"
    correlation_path: str = "/api/correlation/analyze"


class SearchConfig(BaseModel):
    """Search-as-you-type behavior."""

    model_config = ConfigDict(extra="forbid")

    debounce_seconds: float = Field(default=1.0, gt=0)
    min_query_length: int = Field(default=3, ge=1)


class CooldownConfig(BaseModel):
    """Client-side gate between analysis requests."""

    model_config = ConfigDict(extra="forbid")

    seconds: float = Field(default=10.0, ge=0)


class ErrorConfig(BaseModel):
    """Error banner lifetime and language."""

    model_config = ConfigDict(extra="forbid")

    display_seconds: float = Field(default=5.0, gt=0)
    locale: Locale = "en"


class ChartConfig(BaseModel):
    """Chart viewport geometry and bar density."""

    model_config = ConfigDict(extra="forbid")

    left: float = 50.0
    width: float = 730.0
    baseline: float = 140.0
    scale: float = 120.0
    max_bars: int = Field(default=50, ge=1)


class DefaultAsset(BaseModel):
    """Asset selected when a session starts."""

    model_config = ConfigDict(extra="forbid")

    id: str = "bitcoin"
    symbol: str = "btc"
    name: str = "Bitcoin"


class AnalysisDefaults(BaseModel):
    """Default request parameters and the choices offered to the user."""

    model_config = ConfigDict(extra="forbid")

    asset: DefaultAsset = Field(default_factory=DefaultAsset)
    simulation_days: int = Field(default=7, ge=1, le=7)
    correlation_days: int = 90
    rolling_window: int = 30
    index: IndexKey = "sp500"
    period_options: list[int] = Field(default_factory=lambda: [30, 60, 90, 180, 365])
    window_options: list[int] = Field(default_factory=lambda: [7, 14, 30, 60])


class AppConfig(BaseModel):
    """Top-level package configuration."""

    model_config = ConfigDict(extra="forbid")

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    cooldown: CooldownConfig = Field(default_factory=CooldownConfig)
    errors: ErrorConfig = Field(default_factory=ErrorConfig)
    chart: ChartConfig = Field(default_factory=ChartConfig)
    analysis: AnalysisDefaults = Field(default_factory=AnalysisDefaults)


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load raw YAML config into a dictionary."""
    with Path(path).open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML configuration must decode to a mapping object.")
    return data


def build_config(config_path: str | Path | None = None, overrides: dict[str, Any] | None = None) -> AppConfig:
    """Build application config with precedence: overrides > env > YAML > defaults."""
    merged: dict[str, Any] = {}
    if config_path is not None:
        merged.update(load_yaml_config(config_path))
    env_url = os.environ.get(API_URL_ENV)
    if env_url:
        merged = deep_merge(merged, {"service": {"base_url": env_url}})
    if overrides:
        merged = deep_merge(merged, overrides)
    return AppConfig.model_validate(merged)


def merge_config(config: AppConfig, overrides: dict[str, Any]) -> AppConfig:
    """Return a copy of ``config`` with nested ``overrides`` applied and re-validated."""
    return AppConfig.model_validate(deep_merge(config.model_dump(), overrides))


def deep_merge(base: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Merge nested dictionaries recursively."""
    out = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = value
    return out
