from crypto_analysis.core.errors import ErrorPresentationPolicy
from crypto_analysis.core.state import RequestPhase, SessionState
from crypto_analysis.exceptions import TransportError
from crypto_analysis.service.payloads import DEFAULT_ASSET, SearchResult, parse_analysis_payload
from ui.utils import (
    analyze_button_label,
    correlation_cards,
    direction_cards,
    error_banner,
    period_label,
    search_option_label,
)


def test_labels() -> None:
    assert period_label(365) == "1 year"
    assert period_label(90) == "90 days"
    hit = SearchResult(id="ethereum", symbol="eth", name="Ethereum", market_cap_rank=2)
    assert search_option_label(hit) == "Ethereum (ETH) #2"
    assert search_option_label(SearchResult(id="x", symbol="x", name="X")) == "X (X)"


def test_analyze_button_label_tracks_state() -> None:
    state = SessionState(selected=DEFAULT_ASSET)
    assert analyze_button_label(state, "simulation") == "Run simulation"
    assert analyze_button_label(state, "correlation") == "Run correlation analysis"
    state.cooldown_remaining = 4
    assert analyze_button_label(state, "simulation") == "Wait 4s"
    state.phase = RequestPhase.PENDING
    assert analyze_button_label(state, "simulation") == "Analyzing..."


def test_error_banner_levels() -> None:
    policy = ErrorPresentationPolicy()
    state = SessionState(selected=DEFAULT_ASSET)
    assert error_banner(state) is None
    state.error = policy.rate_limited(6, now=0.0)
    assert error_banner(state)[0] == "warning"
    state.error = policy.from_exception(TransportError(), now=0.0)
    assert error_banner(state) == ("error", "An error occurred during analysis.")


def test_correlation_and_direction_cards(correlation_payload) -> None:
    result = parse_analysis_payload("correlation", correlation_payload)
    cards = correlation_cards(result)
    assert [card.label for card in cards][-1] == "Volatility (annualized)"
    assert cards[0].value == "0.420"
    assert cards[0].caption == "moderate"
    assert cards[-1].value == "3.0x"
    assert correlation_cards(result, locale="ja")[0].caption == "中程度の相関"

    direction = direction_cards(result.direction_analysis)
    assert len(direction) == 5
    assert direction[0].caption == "35 / 60 days"


def test_volatility_card_omitted_without_index_volatility(correlation_payload) -> None:
    correlation_payload["statistics"].pop("index_volatility")
    result = parse_analysis_payload("correlation", correlation_payload)
    assert len(correlation_cards(result)) == 4
