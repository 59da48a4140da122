"""Analytics service adapter and payload models."""

from crypto_analysis.service.client import AnalyticsServiceClient
from crypto_analysis.service.payloads import (
    AnalysisRequest,
    AnalysisResult,
    Asset,
    ConditionalCorrelation,
    CorrelationResult,
    DirectionAnalysis,
    PriceSimulationResult,
    SearchResult,
    parse_analysis_payload,
)

__all__ = [
    "AnalyticsServiceClient",
    "AnalysisRequest",
    "AnalysisResult",
    "Asset",
    "SearchResult",
    "PriceSimulationResult",
    "CorrelationResult",
    "DirectionAnalysis",
    "ConditionalCorrelation",
    "parse_analysis_payload",
]
