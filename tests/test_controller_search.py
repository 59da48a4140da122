from conftest import settle, tick

from crypto_analysis.core.state import LookupSucceeded, QueryChanged
from crypto_analysis.exceptions import TransportError
from crypto_analysis.service.payloads import Asset, SearchResult

BTC = SearchResult(id="bitcoin", symbol="btc", name="Bitcoin", market_cap_rank=1)
BCH = SearchResult(id="bitcoin-cash", symbol="bch", name="Bitcoin Cash", market_cap_rank=18)
ETH = SearchResult(id="ethereum", symbol="eth", name="Ethereum", market_cap_rank=2)


def test_rapid_typing_issues_one_lookup_with_final_query(controller, service, clock):
    service.search_results["bitc"] = [BTC, BCH]
    for text in ["b", "bi", "bit", "bitc"]:
        controller.change_query(text)
        tick(controller, clock, 0.2)

    assert service.search_calls == []
    tick(controller, clock, 1.0)

    assert service.search_calls == ["bitc"]
    assert controller.state.results == (BTC, BCH)
    assert controller.state.dropdown_visible


def test_results_keep_upstream_order(controller, service, clock):
    service.search_results["coin"] = [ETH, BTC, BCH]
    controller.change_query("coin")
    tick(controller, clock, 1.0)
    assert [r.id for r in controller.state.results] == ["ethereum", "bitcoin", "bitcoin-cash"]


def test_short_query_hides_dropdown_without_lookup(controller, service, clock):
    service.search_results["bitc"] = [BTC]
    controller.change_query("bitc")
    tick(controller, clock, 1.0)
    assert controller.state.dropdown_visible

    controller.change_query("bi")
    tick(controller, clock, 1.0)

    assert service.search_calls == ["bitc"]
    assert controller.state.results == ()
    assert not controller.state.dropdown_visible


def test_response_for_superseded_query_is_discarded(controller, service, clock):
    service.search_results["bitc"] = [BTC, BCH]
    service.search_results["bitco"] = [BTC]

    controller.change_query("bitc")
    clock.advance(1.0)
    controller.poll()
    assert controller.state.lookup_query == "bitc"

    # user keeps typing before the first response lands
    controller.change_query("bitco")
    settle(controller)
    assert controller.state.results == ()

    tick(controller, clock, 1.0)
    assert controller.state.results == (BTC,)
    assert service.search_calls == ["bitc", "bitco"]


def test_late_lookup_event_for_old_query_is_ignored(controller):
    controller.dispatch(QueryChanged("ethe"))
    controller.dispatch(LookupSucceeded("eth", (ETH,)))
    assert controller.state.results == ()


def test_lookup_failure_shows_empty_list_without_error(controller, service, clock):
    service.search_results["fail"] = TransportError("down")
    controller.change_query("fail")
    tick(controller, clock, 1.0)
    assert controller.state.results == ()
    assert controller.state.error is None


def test_selection_clears_query_and_cancels_pending_lookup(controller, service, clock):
    service.search_results["solan"] = [SearchResult(id="solana", symbol="sol", name="Solana")]
    controller.change_query("solan")
    controller.select(Asset(id="ethereum", symbol="eth", name="Ethereum"))
    tick(controller, clock, 2.0)

    assert service.search_calls == []
    assert controller.state.query == ""
    assert controller.state.results == ()
    assert controller.state.selected.id == "ethereum"


def test_selecting_a_search_result_uses_it_as_subject(controller, service, clock, simulation_payload):
    service.search_results["ether"] = [ETH]
    service.default_payload = simulation_payload
    controller.change_query("ether")
    tick(controller, clock, 1.0)

    controller.select(controller.state.results[0])
    controller.request_analysis("simulation", 7)
    settle(controller)

    assert controller.state.selected == Asset(id="ethereum", symbol="eth", name="Ethereum")
    assert service.analyze_calls[0].subject_id == "ethereum"
    assert not controller.state.dropdown_visible
