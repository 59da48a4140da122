import pytest

from crypto_analysis.exceptions import PayloadValidationError
from crypto_analysis.service.payloads import (
    CorrelationResult,
    PriceSimulationResult,
    parse_analysis_payload,
)


def test_simulation_payload_keys_are_normalized(simulation_payload):
    result = parse_analysis_payload("simulation", simulation_payload)
    assert isinstance(result, PriceSimulationResult)
    assert result.kind == "simulation"
    assert set(result.probability_table) == set(range(-10, 10))
    assert 3 not in result.probability_table[0]
    assert result.probability_table[-10][7] == pytest.approx(6.7)
    assert result.tail_probabilities.up_10pct == 12.5


def test_correlation_payload_with_all_sections(correlation_payload):
    result = parse_analysis_payload("correlation", correlation_payload)
    assert isinstance(result, CorrelationResult)
    assert result.direction_analysis.total_days == 60
    assert result.conditional_correlation.down_reliable is False
    assert result.chart_data.correlations[2] is None


def test_optional_sections_may_be_absent(correlation_payload):
    for key in ("direction_analysis", "conditional_correlation"):
        correlation_payload.pop(key)
    del correlation_payload["statistics"]["btc_volatility"]
    correlation_payload["decoupling"]["current_correlation"] = None

    result = parse_analysis_payload("correlation", correlation_payload)
    assert result.direction_analysis is None
    assert result.conditional_correlation is None
    assert result.statistics.btc_volatility is None
    assert result.decoupling.current_correlation is None


def test_explicit_null_optional_section(correlation_payload):
    correlation_payload["direction_analysis"] = None
    assert parse_analysis_payload("correlation", correlation_payload).direction_analysis is None


@pytest.mark.parametrize(
    "mutate",
    [
        lambda p: p.pop("decoupling"),
        lambda p: p.pop("chart_data"),
        lambda p: p["statistics"].pop("btc_return"),
        lambda p: p["chart_data"]["correlations"].__setitem__(0, 1.5),
        lambda p: p["chart_data"]["dates"].pop(),
    ],
)
def test_invalid_correlation_payload_is_a_validation_error(correlation_payload, mutate):
    mutate(correlation_payload)
    with pytest.raises(PayloadValidationError):
        parse_analysis_payload("correlation", correlation_payload)


def test_missing_simulation_fields(simulation_payload):
    simulation_payload.pop("probability_table")
    with pytest.raises(PayloadValidationError):
        parse_analysis_payload("simulation", simulation_payload)


def test_non_object_payload():
    with pytest.raises(PayloadValidationError):
        parse_analysis_payload("simulation", ["not", "a", "dict"])


def test_response_kind_cannot_override_request_mode(simulation_payload):
    simulation_payload["kind"] = "correlation"
    assert parse_analysis_payload("simulation", simulation_payload).kind == "simulation"


def test_unknown_mode():
    with pytest.raises(ValueError):
        parse_analysis_payload("backtest", {})
