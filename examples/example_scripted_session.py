"""Minimal scripted session against the live analytics service."""

import asyncio

from crypto_analysis.config import build_config
from crypto_analysis.core.controller import AnalysisRequestController
from crypto_analysis.service.client import AnalyticsServiceClient
from crypto_analysis.viz.transforms import classify_correlation, format_correlation


async def run() -> None:
    cfg = build_config()
    async with AnalyticsServiceClient(cfg.service) as client:
        controller = AnalysisRequestController(client, cfg)

        controller.change_query("ethereum")
        await asyncio.sleep(cfg.search.debounce_seconds)
        await controller.settle()
        print("matches:", [hit.name for hit in controller.state.results[:5]])

        controller.request_analysis("correlation", 90, rolling_window=30, subject_id="sp500")
        await controller.settle()
        # a second trigger inside the cooldown is gated locally
        controller.request_analysis("correlation", 90, rolling_window=30, subject_id="sp500")

        state = controller.state
        if state.result is not None and state.result.kind == "correlation":
            current = state.result.decoupling.current_correlation
            print("current correlation:", format_correlation(current), classify_correlation(current).value)
        print("banner:", state.error.message if state.error else None)
        print("cooldown remaining:", state.cooldown_remaining)


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
