import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import crypto_analysis.cli as cli_mod
from crypto_analysis.cli import app
from crypto_analysis.exceptions import TransportError
from crypto_analysis.service.payloads import SearchResult


runner = CliRunner()


class FakeClient:
    """Stands in for AnalyticsServiceClient; records calls on the class."""

    analyze_payload = None
    requests: list = []

    def __init__(self, config=None, transport=None):
        self.config = config

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return None

    async def search(self, query):
        return [
            SearchResult(id="ethereum", symbol="eth", name="Ethereum", market_cap_rank=2),
            SearchResult(id="ethereum-classic", symbol="etc", name="Ethereum Classic"),
        ]

    async def analyze(self, request):
        FakeClient.requests.append(request)
        if isinstance(FakeClient.analyze_payload, Exception):
            raise FakeClient.analyze_payload
        return FakeClient.analyze_payload


@pytest.fixture()
def fake_client(monkeypatch):
    FakeClient.requests = []
    FakeClient.analyze_payload = None
    monkeypatch.setattr(cli_mod, "AnalyticsServiceClient", FakeClient)
    return FakeClient


def test_search_command_text_and_json(fake_client):
    result = runner.invoke(app, ["search", "ether"])
    assert result.exit_code == 0
    assert "ethereum\tETH\tEthereum\t#2" in result.stdout
    assert "ethereum-classic\tETC\tEthereum Classic\t-" in result.stdout

    result = runner.invoke(app, ["search", "ether", "--format", "json"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)[0]["id"] == "ethereum"


def test_search_rejects_short_query(fake_client):
    result = runner.invoke(app, ["search", "et"])
    assert result.exit_code != 0


def test_simulate_command(fake_client, simulation_payload):
    fake_client.analyze_payload = simulation_payload
    result = runner.invoke(app, ["simulate", "--asset", "ethereum", "--days", "5", "--format", "json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["daily_volatility"] == "2.50%"
    assert payload["annualized_return"] == "+35.20%"
    assert payload["probability_table"]["+0"]["3"] is None
    assert payload["probability_table"]["+0"]["2"] == pytest.approx(1.2)
    request = fake_client.requests[0]
    assert (request.mode, request.subject_id, request.days) == ("simulation", "ethereum", 5)


def test_simulate_text_table(fake_client, simulation_payload):
    fake_client.analyze_payload = simulation_payload
    result = runner.invoke(app, ["simulate"])
    assert result.exit_code == 0
    assert "current_price: 65000.0" in result.stdout
    assert "return_pct" in result.stdout
    assert fake_client.requests[0].subject_id == "bitcoin"


def test_simulate_rejects_horizon_out_of_range(fake_client):
    result = runner.invoke(app, ["simulate", "--days", "8"])
    assert result.exit_code != 0
    assert fake_client.requests == []


def test_correlate_command_json(fake_client, correlation_payload):
    fake_client.analyze_payload = correlation_payload
    result = runner.invoke(
        app,
        ["correlate", "--index", "nasdaq", "--days", "180", "--rolling-window", "60", "--format", "json"],
    )

    assert result.exit_code == 0
    summary = json.loads(result.stdout)
    assert summary["current_correlation"] == "0.420"
    assert summary["classification"] == "moderate"
    assert summary["volatility_ratio"] == "3.0x"
    assert summary["downside_concentrated"] is True
    assert summary["period"] == "2024-01-01 .. 2024-01-05"
    request = fake_client.requests[0]
    assert request.to_body() == {"index": "nasdaq", "days": 180, "rolling_window": 60}


def test_correlate_validates_arguments(fake_client):
    assert runner.invoke(app, ["correlate", "--index", "dax"]).exit_code != 0
    assert runner.invoke(app, ["correlate", "--days", "30", "--rolling-window", "30"]).exit_code != 0
    assert fake_client.requests == []


def test_correlate_saves_html_chart(fake_client, correlation_payload, tmp_path: Path):
    fake_client.analyze_payload = correlation_payload
    out = tmp_path / "charts" / "correlation.html"
    result = runner.invoke(app, ["correlate", "--save-chart", str(out), "--format", "json"])

    assert result.exit_code == 0
    assert out.exists()
    assert json.loads(result.stdout)["chart"] == str(out)


def test_service_error_exits_nonzero(fake_client):
    fake_client.analyze_payload = TransportError("Failed to fetch index data", status_code=502)
    result = runner.invoke(app, ["correlate"])
    assert result.exit_code == 1
    assert "Failed to fetch index data" in result.output


def test_api_url_option_overrides_config(fake_client, simulation_payload, monkeypatch):
    seen = []

    def _capture(config=None, transport=None):
        seen.append(config.base_url)
        return FakeClient(config)

    fake_client.analyze_payload = simulation_payload
    monkeypatch.setattr(cli_mod, "AnalyticsServiceClient", _capture)
    result = runner.invoke(app, ["simulate", "--api-url", "http://localhost:8000", "--no-table"])
    assert result.exit_code == 0
    assert seen == ["http://localhost:8000"]


def test_correlate_saves_svg_chart(fake_client, correlation_payload, tmp_path: Path):
    fake_client.analyze_payload = correlation_payload
    out = tmp_path / "correlation.svg"
    result = runner.invoke(app, ["correlate", "--save-chart", str(out)])

    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8").count("<polyline") == 2
